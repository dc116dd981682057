import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .DocumentLibrary import DocumentLibrary
from .PDFStamper import PDFStamper
from .StampConfig import StampConfig, StampError

DEFAULT_LIBRARY = "signstamper_data"

# ==========================================
# CLI & Execution
# ==========================================

def run_stamp_service(
    input_pdf: str,
    output_pdf: str,
    signature_image: str,
    page: int = 1,
    x: float = 0.0,
    y: float = 0.0,
    config: Optional[StampConfig] = None,
    password: Optional[str] = None,
):
    """
    High-level entry point: stamp a signature file onto a PDF file on disk.
    """
    input_path = Path(input_pdf)
    signature_path = Path(signature_image)
    for path in (input_path, signature_path):
        if not path.is_file():
            raise StampError(f"Input file not found: {path}")

    stamper = PDFStamper(config)
    print(f"[stage] stamping page {page} of {input_path} at viewport ({x}, {y}) ...")
    signed = stamper.stamp(
        input_path.read_bytes(), signature_path.read_bytes(), page, x, y, password=password
    )

    # Output is only written once the whole stamp succeeded
    output_path = Path(output_pdf)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(signed)
    print(f"[done] saved signed PDF to: {output_path}")


def _config_from_args(args) -> StampConfig:
    return StampConfig(
        viewport_width=args.viewport_width,
        footprint_width=args.sig_width,
        footprint_height=args.sig_height,
        author=args.author,
    )


def _print_json(data):
    print(json.dumps(data, indent=2))


def _cmd_stamp(args):
    run_stamp_service(
        input_pdf=args.input,
        output_pdf=args.output,
        signature_image=args.signature,
        page=args.page,
        x=args.x,
        y=args.y,
        config=_config_from_args(args),
        password=args.password,
    )


def _cmd_upload(args, library: DocumentLibrary):
    path = Path(args.file)
    if not path.is_file():
        raise StampError(f"Input file not found: {path}")
    record = library.upload(args.owner, path.name, path.read_bytes())
    _print_json(record.to_dict())


def _cmd_list(args, library: DocumentLibrary):
    _print_json([record.to_dict() for record in library.list_documents(args.owner)])


def _cmd_sign(args, library: DocumentLibrary):
    signature = Path(args.signature)
    if not signature.is_file():
        raise StampError(f"Input file not found: {signature}")
    record = library.sign(args.document, signature.read_bytes(), args.page, args.x, args.y,
                          password=args.password)
    print(f"[done] document {record.id} signed: {library.root / record.file_path}")


def _cmd_share(args, library: DocumentLibrary):
    print(library.share(args.document, args.owner))


def _cmd_show(args, library: DocumentLibrary):
    _print_json(library.get_public(args.token))


def _cmd_delete(args, library: DocumentLibrary):
    library.delete(args.document, args.owner)
    print(f"[done] document {args.document} deleted")


def _add_geometry_args(parser: argparse.ArgumentParser):
    parser.add_argument("--page", type=int, default=1, help="1-based page number")
    parser.add_argument("-x", type=float, default=0.0, help="Viewport x of the signature's top-left corner")
    parser.add_argument("-y", type=float, default=0.0, help="Viewport y of the signature's top-left corner")
    parser.add_argument("--password", help="Password for encrypted PDFs")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="signstamper",
        description="Place a signature image on a PDF page",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--library", default=os.environ.get("SIGNSTAMPER_LIBRARY", DEFAULT_LIBRARY),
                        help="Document library directory")
    sub = parser.add_subparsers(dest="command", required=True)

    # Stamp files directly
    p = sub.add_parser("stamp", help="Stamp a signature onto a PDF file",
                       formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    p.add_argument("-i", "--input", required=True, help="Path to source PDF")
    p.add_argument("-o", "--output", required=True, help="Path to save signed PDF")
    p.add_argument("-s", "--signature", required=True, help="Path to signature image (PNG/JPG)")
    _add_geometry_args(p)
    p.add_argument("--viewport-width", type=float, default=StampConfig.viewport_width,
                   help="Width of the placement viewport")
    p.add_argument("--sig-width", type=float, default=StampConfig.footprint_width,
                   help="Signature width in viewport units")
    p.add_argument("--sig-height", type=float, default=StampConfig.footprint_height,
                   help="Signature height in viewport units")
    p.add_argument("--author", default=StampConfig.author, help="Author written to the signed PDF")
    p.set_defaults(func=_cmd_stamp, needs_library=False)

    # Document library
    p = sub.add_parser("upload", help="Add a PDF to the library")
    p.add_argument("--owner", required=True)
    p.add_argument("file")
    p.set_defaults(func=_cmd_upload, needs_library=True)

    p = sub.add_parser("list", help="List an owner's documents, newest first")
    p.add_argument("--owner", required=True)
    p.set_defaults(func=_cmd_list, needs_library=True)

    p = sub.add_parser("sign", help="Sign a library document")
    p.add_argument("document")
    p.add_argument("-s", "--signature", required=True, help="Path to signature image (PNG/JPG)")
    _add_geometry_args(p)
    p.set_defaults(func=_cmd_sign, needs_library=True)

    p = sub.add_parser("share", help="Print the share token of a document")
    p.add_argument("--owner", required=True)
    p.add_argument("document")
    p.set_defaults(func=_cmd_share, needs_library=True)

    p = sub.add_parser("show", help="Show a shared document")
    p.add_argument("token")
    p.set_defaults(func=_cmd_show, needs_library=True)

    p = sub.add_parser("delete", help="Delete a document and its files")
    p.add_argument("--owner", required=True)
    p.add_argument("document")
    p.set_defaults(func=_cmd_delete, needs_library=True)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.needs_library:
            args.func(args, DocumentLibrary(args.library))
        else:
            args.func(args)
    except StampError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"An unexpected error occurred: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
