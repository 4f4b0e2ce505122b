"""
zipset CLI.

Commands:
    build      Apply additions/removals to a zip and write the result
    ls         List the entries of a zip, optionally inside nested zips

Examples:
    zipset build --base app.zip --add "lib/inner.zip!config.json=config.json" -o out.zip
    zipset build --plan changes.json -o out.zip
    zipset build --mkdir logs/ --text VERSION=1.2.0 -o - > fresh.zip
    zipset ls out.zip -r
"""

from __future__ import annotations

import argparse
import sys


def _split_assignment(value: str, flag: str) -> tuple[str, str]:
    path, sep, rhs = value.partition("=")
    if not sep or not path:
        raise ValueError(f"{flag} expects PATH=VALUE, got {value!r}")
    return path, rhs


def cmd_build(args: argparse.Namespace) -> int:
    """Handle build command."""
    from pathlib import Path

    from zipset import ArchiveSet, ZipSetError
    from zipset.plan import BuildPlan
    from zipset.runtime import get_build_config, set_global_config

    output = args.output
    if output != "-":
        output_path = Path(output)
        if output_path.exists() and not args.yes:
            print(f"Error: '{output}' exists (use -y to overwrite)", file=sys.stderr)
            return 1

    try:
        if args.plan:
            plan, root = BuildPlan.load(args.plan)
            # --base wins over the plan's base
            archive = plan.to_archive_set(root, base=args.base)
        else:
            archive = ArchiveSet(args.base)

        for value in args.add:
            path, file = _split_assignment(value, "--add")
            archive.add(path, Path(file))
        for value in args.text:
            path, text = _split_assignment(value, "--text")
            archive.add(path, text.encode("utf-8"))
        for path in args.mkdir:
            archive.add_directory(path)
        for path in args.remove:
            archive.remove(path)

        if output != "-" and isinstance(archive.base, Path) and archive.base.exists():
            if archive.base.resolve() == Path(output).resolve():
                # Opening the output would truncate the base before it is read
                print("Error: output must differ from the base archive", file=sys.stderr)
                return 1

        config = get_build_config(verbose=args.verbose)
        set_global_config(config)

        if output == "-":
            archive.build(sys.stdout.buffer)
        else:
            archive.build_file(output)
            if config.verbose:
                print(f"\nOutput: {output}", file=sys.stderr)
        return 0
    except (ZipSetError, ValueError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _list_entries(reader, prefix: str, recursive: bool) -> None:
    for info in reader.entries():
        name = f"{prefix}{info.filename}"
        kind = "d" if info.is_dir() else "-"
        print(f"{kind} {info.file_size:>12,}  {name}")

        if recursive and not info.is_dir() and info.filename.lower().endswith((".zip", ".jar")):
            with reader.open_nested(info) as nested:
                _list_entries(nested, f"{name}!", recursive)


def cmd_ls(args: argparse.Namespace) -> int:
    """Handle ls command."""
    from pathlib import Path

    from zipset import ZipSetError
    from zipset.codec import ArchiveReader

    archive_path = Path(args.archive)
    if not archive_path.exists():
        print(f"Error: File not found: {archive_path}", file=sys.stderr)
        return 1

    try:
        with ArchiveReader(archive_path) as reader:
            _list_entries(reader, "", args.recursive)
        return 0
    except (ZipSetError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="zipset",
        description="Build zip archives from lazy additions and removals.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # build
    build_parser = subparsers.add_parser(
        "build",
        help="Apply changes to a zip and write the result",
    )
    build_parser.add_argument(
        "-o",
        "--output",
        required=True,
        help="Output zip path ('-' for stdout)",
    )
    build_parser.add_argument(
        "-b",
        "--base",
        default=None,
        help="Existing zip to start from",
    )
    build_parser.add_argument(
        "-p",
        "--plan",
        default=None,
        help="JSON build plan to apply before the other flags",
    )
    build_parser.add_argument(
        "-a",
        "--add",
        action="append",
        default=[],
        metavar="PATH=FILE",
        help="Add a file or directory from the filesystem (repeatable)",
    )
    build_parser.add_argument(
        "--text",
        action="append",
        default=[],
        metavar="PATH=TEXT",
        help="Add an entry with literal UTF-8 text (repeatable)",
    )
    build_parser.add_argument(
        "--mkdir",
        action="append",
        default=[],
        metavar="PATH",
        help="Add an empty directory (repeatable)",
    )
    build_parser.add_argument(
        "-r",
        "--remove",
        action="append",
        default=[],
        metavar="PATH",
        help="Exclude an entry (repeatable)",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print each entry as it is written",
    )
    build_parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Overwrite existing output file",
    )

    # ls
    ls_parser = subparsers.add_parser(
        "ls",
        help="List the entries of a zip",
    )
    ls_parser.add_argument(
        "archive",
        help="Path to zip file",
    )
    ls_parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        help="Descend into nested .zip/.jar entries",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "build":
        return cmd_build(args)
    elif args.command == "ls":
        return cmd_ls(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
