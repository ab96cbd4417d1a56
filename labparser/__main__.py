"""
Module entry point for: python -m labparser

Allows running the extractor directly as a module:
    python -m labparser parse <pdf_path> [options]
    python -m labparser info <pdf_path>
    python -m labparser serve [options]
"""

from .cli import cli


def main():
    cli()


if __name__ == "__main__":
    main()
