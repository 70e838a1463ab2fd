#!/usr/bin/env python3
"""Report whether certificate rendering is configured, optionally rendering a sample."""

from __future__ import annotations

import argparse
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from certificates import CertificateRenderError, generate_certificate_pdf, renderer_summary
from pdf_rendering import TEMPLATE_DIR

REQUIRED_TEMPLATES = ["certificate.html", "certificate.tex"]


def collect_issues(summary: dict) -> list:
    issues = []
    for name in REQUIRED_TEMPLATES:
        if not (TEMPLATE_DIR / name).exists():
            issues.append(f"template {name} is missing from {TEMPLATE_DIR}")
    if summary["chain"] == ["latex"] and not summary["latex_credentials_configured"]:
        issues.append("CERTIFICATE_RENDERER=latex but ASPOSE_CLIENT_ID/ASPOSE_CLIENT_SECRET are not set")
    return issues


def main() -> int:
    parser = argparse.ArgumentParser(description="Check certificate rendering setup")
    parser.add_argument("--sample", metavar="PATH", help="Render a sample certificate to PATH")
    args = parser.parse_args()

    summary = renderer_summary()
    print("Certificate setup")
    for key, value in summary.items():
        print(f"- {key}: {value}")

    issues = collect_issues(summary)
    for issue in issues:
        print(f"! {issue}")

    if args.sample:
        try:
            result = generate_certificate_pdf("Sample Participant", "Sample Team", "Sample Domain")
        except CertificateRenderError as exc:
            print(f"! sample rendering failed: {exc}")
            return 1
        Path(args.sample).write_bytes(result.content)
        print(f"- sample: {args.sample} ({len(result.content)} bytes, {result.method})")

    print(f"- status: {'ready' if not issues else 'not ready'}")
    return 0 if not issues else 1


if __name__ == "__main__":
    raise SystemExit(main())
