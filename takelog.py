#!/usr/bin/env python3
"""Take Continuity Logger - Log film takes with continuous file numbering.

Supports both GUI and CLI modes for logging scene/shot/take entries with
sound and camera file numbers, detecting numbering conflicts and inserting
takes before existing ones.
"""

# --- Imports ---
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from config import load_config
from continuity import (
    Classification,
    ContinuityError,
    DatabaseManager,
    EntitlementGate,
    FileRangeConflict,
    InsertEligible,
    ShotDetail,
    TakeCollision,
    TakeLogManager,
    TakeResolution,
    WasteOptions,
    export_csv,
    format_slot,
    load_project_settings,
)
from continuity.settings import settings_from_dict
from continuity.slots import camera_field, file_fields, field_label, normalize_file_number


# --- Conflict prompts ---
class CliResolver:
    """Answers take and insert-before questions from flags or stdin."""

    def __init__(
        self,
        assume_yes: bool = False,
        take_resolution: Optional[TakeResolution] = None,
    ) -> None:
        self.assume_yes = assume_yes
        self.take_resolution = take_resolution

    def resolve_take_conflict(self, collision: TakeCollision) -> TakeResolution:
        if self.take_resolution is not None:
            return self.take_resolution
        print(f"Take already logged at {collision.existing.location}.")
        if not sys.stdin.isatty():
            return TakeResolution.CANCEL
        answer = input(
            f"[s] log as take {collision.suggested_take}, "
            f"[i] insert and renumber later takes, [c] cancel: "
        ).strip().lower()
        return {
            's': TakeResolution.USE_SUGGESTED,
            'i': TakeResolution.INSERT_HERE,
        }.get(answer, TakeResolution.CANCEL)

    def confirm_insert_before(self, eligible: InsertEligible) -> bool:
        print(f"File numbers line up with {eligible.target.location}.")
        if self.assume_yes:
            return True
        if not sys.stdin.isatty():
            return False
        answer = input("Insert before it and renumber the rest of the shot? [y/N] ")
        return answer.strip().lower() in ('y', 'yes')


# --- CLI ---
def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for CLI mode.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog='takelog',
        description='Take Continuity Logger - Log takes with continuous file numbering.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              Launch GUI
  %(prog)s --new-project "Short" --cameras 2
                                        Create a two-camera project
  %(prog)s --projects                   List projects
  %(prog)s --project 1 --next           Show the predicted next take
  %(prog)s --project 1 --add --sound 0012 --camera 0031
                                        Log a take (other values predicted)
  %(prog)s --project 1 --add --camera 0001-0003 --yes
                                        Log a range, confirming insert-before
  %(prog)s --project 1 --add --classification sfx --sound 0040
                                        Log a sound effect
  %(prog)s --project 1 --export sheet.csv
                                        Export the log sheet
        """
    )

    parser.add_argument('--gui', action='store_true', help='Launch the graphical interface')
    parser.add_argument('--db', metavar='PATH', help='Database file (default from config)')
    parser.add_argument('--config', metavar='PATH', help='YAML application config')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')

    projects = parser.add_argument_group('projects')
    projects.add_argument('--new-project', metavar='NAME', help='Create a project')
    projects.add_argument('--cameras', type=int, metavar='N', help='Camera count for --new-project')
    projects.add_argument('--settings', metavar='PATH', help='YAML project settings for --new-project')
    projects.add_argument('--projects', action='store_true', help='List projects')
    projects.add_argument('--project', type=int, metavar='ID', help='Project to work on')

    entries = parser.add_argument_group('entries')
    entries.add_argument('--list', action='store_true', help='List the entries of --project')
    entries.add_argument('--next', action='store_true', help='Show the predicted next take')
    entries.add_argument('--add', action='store_true', help='Log a take')
    entries.add_argument('--delete', type=int, metavar='ENTRY_ID', help='Delete an entry')
    entries.add_argument('--export', metavar='PATH', help='Export the log sheet as CSV')

    take = parser.add_argument_group('take values (with --add)')
    take.add_argument('--scene')
    take.add_argument('--shot')
    take.add_argument('--take')
    take.add_argument('--sound', metavar='NUM', help='Sound file number or FROM-TO range')
    take.add_argument('--camera', action='append', metavar='NUM',
                      help='Camera file number or FROM-TO range (repeat per camera)')
    take.add_argument('--inactive', type=int, action='append', metavar='N',
                      help='Camera channel not recording (repeatable)')
    take.add_argument('--classification', choices=[c.value for c in Classification],
                      default=Classification.NORMAL.value)
    take.add_argument('--waste', metavar='CHANNELS',
                      help='Channels kept on a wasted take: camera, sound or camera,sound')
    take.add_argument('--sound-speed', choices=['yes', 'no'], help='Whether sound rolled on an insert')
    take.add_argument('--mos', action='store_true', help='Mark the take MOS')
    take.add_argument('--description')
    take.add_argument('--notes')
    take.add_argument('--good', action='store_true', help='Mark as a good take')
    take.add_argument('--yes', action='store_true', help='Confirm insert-before without asking')
    take.add_argument('--suggested-take', action='store_true',
                      help='On a take collision, log as the next free take')
    take.add_argument('--insert-take', action='store_true',
                      help='On a take collision, keep the number and renumber later takes')

    tokens = parser.add_argument_group('tokens')
    tokens.add_argument('--add-tokens', type=int, metavar='N', help='Add purchased tokens')
    tokens.add_argument('--unlock', action='store_true', help='Spend a token on --project')

    return parser


def _print_entries(manager: TakeLogManager, project_id: int) -> None:
    settings = manager.settings_for(project_id)
    entries = manager.db.list_entries(project_id)
    if not entries:
        print("No entries logged.")
        return

    fields = file_fields(settings)
    labels = ''.join(f"{field_label(f, settings.camera_count):<16}" for f in fields)
    print(f"{'ID':<6} {'Scene':<8} {'Shot':<8} {'Take':<6} {'Class':<10} {labels}")
    print("-" * (42 + 16 * len(fields)))
    for entry in entries:
        slots = ''.join(f"{format_slot(entry.slot(f)) or '-':<16}" for f in fields)
        print(
            f"{entry.id:<6} {entry.scene or '-':<8} {entry.shot or '-':<8} "
            f"{entry.take or '-':<6} {entry.classification.value:<10} {slots}"
        )


def _file_value(raw: str) -> object:
    """A typed file number: ranges become a pair, singles are padded."""
    if '-' in raw:
        start, _, end = raw.partition('-')
        return (normalize_file_number(start), normalize_file_number(end))
    return normalize_file_number(raw)


def _add_entry(manager: TakeLogManager, args: argparse.Namespace) -> int:
    project_id = args.project
    settings = manager.settings_for(project_id)
    rec_active = {camera_field(n): False for n in args.inactive or ()}
    form = manager.new_form(project_id, rec_active)

    for name in ('scene', 'shot', 'take', 'description', 'notes'):
        value = getattr(args, name)
        if value is not None:
            form.set_value(name, value)
    if args.sound is not None:
        form.set_value('sound', _file_value(args.sound))
    for index, raw in enumerate(args.camera or (), start=1):
        if index > settings.camera_count:
            print(f"Error: project has {settings.camera_count} camera(s)", file=sys.stderr)
            return 1
        form.set_value(camera_field(index), _file_value(raw))
    form.is_good_take = args.good

    classification = Classification(args.classification)
    if classification is not Classification.NORMAL:
        waste = None
        if args.waste:
            kept = {part.strip() for part in args.waste.split(',')}
            waste = WasteOptions(camera='camera' in kept, sound='sound' in kept)
        speed = None if args.sound_speed is None else args.sound_speed == 'yes'
        form.select_classification(classification, waste_options=waste, sound_speed=speed)
    if args.mos:
        form.toggle_shot_detail(ShotDetail.MOS)

    take_resolution = None
    if args.suggested_take:
        take_resolution = TakeResolution.USE_SUGGESTED
    elif args.insert_take:
        take_resolution = TakeResolution.INSERT_HERE
    resolver = CliResolver(assume_yes=args.yes, take_resolution=take_resolution)

    try:
        entry = manager.commit(project_id, form, resolver)
    except FileRangeConflict as e:
        print(f"Conflict: {e}", file=sys.stderr)
        return 1

    if entry is None:
        print("Cancelled, nothing logged.")
        return 1
    print(f"Logged entry {entry.id}: {entry.location}")
    return 0


def run_cli(args: argparse.Namespace) -> int:
    """Execute CLI commands.

    Args:
        args: Parsed command line arguments.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    config = load_config(Path(args.config) if args.config else None)
    db = DatabaseManager(Path(args.db) if args.db else Path(config['db_path']))
    gate = EntitlementGate(db, trial_limit=int(config['trial_log_limit']))
    manager = TakeLogManager(db, gate)

    try:
        if args.add_tokens:
            print(f"Token balance: {gate.add_tokens(args.add_tokens)}")
            if args.project is None and not args.new_project:
                return 0

        # Create a project
        if args.new_project:
            if args.settings:
                settings = load_project_settings(Path(args.settings))
            else:
                settings = settings_from_dict({'camera_count': args.cameras or 1})
            project_id = manager.create_project(args.new_project, settings)
            print(f"Created project {project_id}: {args.new_project} "
                  f"({settings.camera_count} camera(s))")
            return 0

        # List projects
        if args.projects:
            projects = db.get_projects()
            if not projects:
                print("No projects found.")
                return 0

            print(f"{'ID':<6} {'Created':<20} {'Cameras':<8} {'Entries':<8} Name")
            print("-" * 80)
            for project in projects:
                created = project.created_at.strftime("%Y-%m-%d %H:%M:%S")
                print(f"{project.id:<6} {created:<20} {project.settings.camera_count:<8} "
                      f"{project.entry_count:<8} {project.name}")
            remaining = gate.remaining_trial_entries()
            print(f"\nTokens: {gate.state.tokens}, trial entries left: {remaining}")
            return 0

        if args.project is None:
            if args.list or args.next or args.add or args.delete or args.export or args.unlock:
                print("Error: --project is required.", file=sys.stderr)
                return 1
            create_parser().print_help()
            return 0

        if args.unlock:
            if not gate.unlock_project(args.project):
                print("Error: no token available.", file=sys.stderr)
                return 1
            print(f"Project {args.project} unlocked")
            return 0

        if args.list:
            _print_entries(manager, args.project)
            return 0

        if args.next:
            prediction = manager.predict(args.project)
            print(f"Scene {prediction.scene}, Shot {prediction.shot}, Take {prediction.take}")
            settings = manager.settings_for(args.project)
            for field_id, value in prediction.files.items():
                print(f"  {field_label(field_id, settings.camera_count)}: {value or '-'}")
            return 0

        if args.delete is not None:
            if not manager.delete_entry(args.delete):
                print(f"Error: entry {args.delete} not found.", file=sys.stderr)
                return 1
            print(f"Deleted entry {args.delete}")
            return 0

        if args.export:
            path = Path(args.export)
            count = export_csv(db.list_entries(args.project), manager.settings_for(args.project), path)
            print(f"Exported {count} entries to {path}")
            return 0

        if args.add:
            return _add_entry(manager, args)

    except ContinuityError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    create_parser().print_help()
    return 0


# --- Entry Point ---
def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the application.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)
    config = load_config(Path(args.config) if args.config else None)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config['log_level'],
        format='%(asctime)s %(name)s %(levelname)s: %(message)s',
    )

    # GUI is launched if: --gui flag, OR no arguments at all
    launch_gui = args.gui or not (argv if argv is not None else sys.argv[1:])

    if launch_gui:
        from PyQt6.QtWidgets import QApplication
        from ui import LogSheetWindow

        app = QApplication(sys.argv)
        db = DatabaseManager(Path(args.db) if args.db else Path(config['db_path']))
        window = LogSheetWindow(TakeLogManager(db, EntitlementGate(db, int(config['trial_log_limit']))))
        window.show()
        return app.exec()

    return run_cli(args)


if __name__ == '__main__':
    sys.exit(main())
