import argparse
import asyncio
import logging
import os
import sys

from .collaborators import always_confirm, never_confirm
from .config import Config
from .errors import SegmentEditorError
from .session import EditorSession
from .stores.file_store import FileSourceStore


def _open_session(path, confirm=None):
    path = os.path.abspath(path)
    store = FileSourceStore(os.path.dirname(path))
    return EditorSession(os.path.basename(path), store, confirm=confirm)


def _prompt_confirm(member_key):
    name = member_key.split("::", 1)[-1]
    answer = input(f"Pasted code includes a new member '{name}'. Add it? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


async def _segments(args):
    session = _open_session(args.file)
    await session.load()
    for segment in session.segments():
        lines = segment.text.count("\n") + 1
        print(f"{segment.order:3d}  {segment.key}  ({lines} lines)")


async def _show(args):
    session = _open_session(args.file)
    await session.load()
    print(session.document.text_of(args.key))


async def _reassemble(args):
    session = _open_session(args.file)
    await session.load()
    sys.stdout.write(session.reassemble())


async def _paste(args):
    if args.yes:
        confirm = always_confirm
    elif args.no:
        confirm = never_confirm
    else:
        confirm = _prompt_confirm

    if args.paste_file == "-":
        pasted = sys.stdin.read()
    else:
        with open(args.paste_file, "r", encoding="utf-8") as f:
            pasted = f.read()

    session = _open_session(args.file, confirm=confirm)
    await session.load()
    result = await session.paste(pasted)
    print(result.message, file=sys.stderr)

    if args.dry_run:
        sys.stdout.write(session.reassemble())
    elif session.is_dirty:
        await session.save()
        print(f"Saved {args.file}", file=sys.stderr)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Segment-level editor for JavaScript classes and object literals")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL, help="Logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("segments", help="List the segments of a file")
    p.add_argument("file")
    p.set_defaults(handler=_segments)

    p = sub.add_parser("show", help="Print one segment")
    p.add_argument("file")
    p.add_argument("key", help="Segment key, e.g. 'Foo::greet'")
    p.set_defaults(handler=_show)

    p = sub.add_parser("reassemble", help="Print the file rebuilt from its segments")
    p.add_argument("file")
    p.set_defaults(handler=_reassemble)

    p = sub.add_parser("paste", help="Merge pasted members into a file")
    p.add_argument("file")
    p.add_argument("paste_file", help="File holding the pasted members, or - for stdin")
    choice = p.add_mutually_exclusive_group()
    choice.add_argument("--yes", action="store_true", help="Add every new member without asking")
    choice.add_argument("--no", action="store_true", help="Never add new members")
    p.add_argument("--dry-run", action="store_true", help="Print the result instead of saving")
    p.set_defaults(handler=_paste)

    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    try:
        asyncio.run(args.handler(args))
    except SegmentEditorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
