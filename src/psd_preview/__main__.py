import argparse
import logging
import os
from pprint import pprint
from typing import Optional

from PIL import Image

from psd_preview.api import loader
from psd_preview.api.store import DocumentRegistry, TemplateRegistry
from psd_preview.composite import RenderRequest, render
from psd_preview.constants import PREVIEW_QUALITY, FramingMode, NameMatch
from psd_preview.version import __version__

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="psd-preview command line utility.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Be more verbose.")
    parser.add_argument("--version", action="version", version=__version__)

    # --verbose after the subcommand; SUPPRESS leaves a leading flag as is.
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Be more verbose.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    render_parser = subparsers.add_parser(
        "render", parents=[common], help="Render a payload preview"
    )
    render_parser.add_argument("payload_file", help="Transformed payload JSON")
    render_parser.add_argument("output_file", help="Output image file")
    render_parser.add_argument(
        "-d",
        "--document",
        action="append",
        default=[],
        help="Source document manifest JSON, repeatable",
    )
    render_parser.add_argument(
        "-t",
        "--templates",
        action="append",
        default=[],
        help="Template JSON, repeatable",
    )
    render_parser.add_argument(
        "--strict",
        action="store_true",
        help="Use template container bounds instead of auto-framing",
    )
    render_parser.add_argument(
        "--case-insensitive",
        action="store_true",
        help="Match container names case-insensitively",
    )
    render_parser.add_argument(
        "--format", default=None, help="Image format, guessed from the output name"
    )
    render_parser.add_argument("--quality", type=int, default=PREVIEW_QUALITY)

    count_parser = subparsers.add_parser(
        "count", parents=[common], help="Print the deep leaf count"
    )
    count_parser.add_argument("payload_file", help="Transformed payload JSON")

    show_parser = subparsers.add_parser(
        "show", parents=[common], help="Show the payload content"
    )
    show_parser.add_argument("payload_file", help="Transformed payload JSON")

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> Optional[int]:
    args = parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    package_logger = logging.getLogger("psd_preview")
    if args.verbose:
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(logging.INFO)

    try:
        payload = loader.load_payload(args.payload_file)
    except (OSError, ValueError, TypeError) as e:
        logger.error("Cannot read %s: %s" % (args.payload_file, e))
        return 1

    if args.command == "render":
        try:
            documents = DocumentRegistry(loader.load_document(f) for f in args.document)
            templates = TemplateRegistry(
                t for f in args.templates for t in loader.load_templates(f)
            )
        except (OSError, ValueError, TypeError) as e:
            logger.error(str(e))
            return 1
        request = RenderRequest(
            payload,
            FramingMode.STRICT if args.strict else FramingMode.AUTO,
            documents,
            templates,
            NameMatch.CASE_INSENSITIVE if args.case_insensitive else NameMatch.EXACT,
        )
        result = render(request)
        if result is None:
            logger.warning("Empty target size, nothing written")
            return None
        extension = os.path.splitext(args.output_file)[1].lower()
        format = args.format or Image.registered_extensions().get(extension)
        if format is None:
            logger.error("Cannot guess the image format of %s" % args.output_file)
            return 1
        try:
            data = result.encode(format, args.quality)
        except (KeyError, OSError, ValueError) as e:
            logger.error("Cannot encode %s: %s" % (format, e))
            return 1
        with open(args.output_file, "wb") as f:
            f.write(data)

    elif args.command == "count":
        print(payload.leaf_count())

    elif args.command == "show":
        pprint(payload)

    return None


if __name__ == "__main__":
    main()
