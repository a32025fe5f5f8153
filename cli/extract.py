"""CLI for running a website extraction locally."""

from __future__ import annotations

import argparse
import json
from pathlib import Path


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and print the extracted vendor document as JSON.

    The command drives a wizard controller through the URL step exactly as
    the Streamlit app does, either against the live extraction endpoint or
    by replaying a recorded ``text/event-stream`` transcript. Example::

        python -m cli.extract --url https://vendor.example
        python -m cli.extract --url https://vendor.example --transcript run.sse
    """

    parser = argparse.ArgumentParser(description="Vendor intake website extractor")
    parser.add_argument("--url", required=True, help="Website of the vendor to extract")
    parser.add_argument("--endpoint", help="Override the extraction stream endpoint")
    parser.add_argument("--transcript", help="Replay a recorded SSE transcript instead of calling the endpoint")
    args = parser.parse_args(argv)

    import config
    from ingest.stream import open_extraction_stream
    from models.vendor_profile import VendorProfile
    from utils.logging_context import configure_logging
    from wizard.navigation import WizardController

    configure_logging(level="DEBUG" if config.VENDOR_INTAKE_DEBUG else config.LOG_LEVEL)

    if args.transcript:
        transcript = Path(args.transcript)
        if not transcript.exists():
            raise SystemExit(f"File not found: {transcript}")
        lines = transcript.read_text(encoding="utf-8").splitlines()

        def opener(_url: str) -> list[str]:
            return lines

    else:

        def opener(url: str):
            return open_extraction_stream(url, endpoint=args.endpoint)

    controller = WizardController(stream_opener=opener)
    if not controller.parse_url(args.url):
        raise SystemExit(controller.parse_error or "Extraction did not finish.")

    outcome = controller.last_stream_outcome
    profile = VendorProfile.from_document(controller.document)
    result = {
        "document": profile.to_document(),
        "completion": {str(index): done for index, done in controller.completion.items()},
        "sectionErrors": dict(outcome.section_errors) if outcome else {},
    }
    print(json.dumps(result, indent=2))


if __name__ == "__main__":  # pragma: no cover
    main()
