from __future__ import annotations

import argparse
import asyncio
import json
import mimetypes
import os
import uuid
from pathlib import Path
from typing import Any

import fitz  # type: ignore[import-untyped]
import httpx

from examsense_api.config.settings import get_settings

FileField = tuple[str, tuple[str, bytes, str]]


def _create_pdf_bytes(text: str) -> bytes:
    document = fitz.open()
    try:
        page = document.new_page(width=595, height=842)  # A4
        page.insert_textbox(
            fitz.Rect(40, 40, 555, 800),
            text,
            fontsize=11,
            fontname="helv",
        )
        return bytes(document.tobytes())
    finally:
        document.close()


def _file_fields(field: str, paths: list[Path]) -> list[FileField]:
    fields: list[FileField] = []
    for path in paths:
        media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        fields.append((field, (path.name, path.read_bytes(), media_type)))
    return fields


async def _submit(
    client: httpx.AsyncClient,
    *,
    session_id: str,
    syllabus_text: str,
    questions_text: str,
    files: list[FileField],
) -> httpx.Response:
    data = {"syllabus_text": syllabus_text, "questions_text": questions_text}
    return await client.post(
        "/api/v1/analysis",
        headers={"X-Session-Id": session_id},
        data=data,
        files=files or None,
    )


def _print_view(view: dict[str, Any]) -> None:
    syllabus = view["syllabus"]
    print(f"\n== {syllabus['heading']}")
    for unit in syllabus["units"]:
        print(f"\n[{unit['position']}] {unit['title']}")
        for topic in unit["topics"]:
            print(
                f"  - {topic['name']} | {topic['priority_label']} | {topic['depth_label']}\n"
                f"      {topic['reasoning']}"
            )

    insights = view["insights"]
    print(f"\n== {insights['heading']}")
    for insight in insights["insights"]:
        print(f"  * {insight}")

    plan = view["study_plan"]
    print(f"\n== {plan['heading']}")
    for tier in plan["tiers"]:
        print(f"  {tier['heading']}: {', '.join(tier['topics']) or '-'}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Manual smoke-test of the exam analysis endpoint against a running API."
    )
    parser.add_argument(
        "--base-url",
        default=os.environ.get("EXAMSENSE_API_BASE_URL", "http://localhost:8000"),
        help="FastAPI base URL (default: %(default)s)",
    )
    parser.add_argument(
        "--syllabus-text",
        default="Unit 1: Thermodynamics",
        help="Syllabus text pasted into the request (default: %(default)s).",
    )
    parser.add_argument(
        "--questions-text",
        default="Explain entropy (2019, 2021)",
        help="Past question text pasted into the request (default: %(default)s).",
    )
    parser.add_argument(
        "--syllabus-file",
        type=Path,
        action="append",
        default=[],
        help="Syllabus PDF or image to upload. Repeat to upload several, in order.",
    )
    parser.add_argument(
        "--questions-file",
        type=Path,
        action="append",
        default=[],
        help="Past question PDF or image to upload. Repeat to upload several, in order.",
    )
    parser.add_argument(
        "--questions-as-pdf",
        action="store_true",
        help="Render --questions-text into a generated PDF instead of pasting it.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=180.0,
        help="Seconds to wait for the analysis response (default: %(default)s).",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the raw JSON response instead of the rendered view.",
    )
    return parser


async def main_async(args: argparse.Namespace) -> None:
    settings = get_settings()
    if not settings.gemini_api_key:
        print(
            "[analysis-smoke] EXAMSENSE_GEMINI_API_KEY is not set locally; "
            "the server must have it."
        )

    files = _file_fields("syllabus_files", args.syllabus_file)
    files.extend(_file_fields("question_files", args.questions_file))
    questions_text = args.questions_text
    if args.questions_as_pdf:
        pdf_bytes = _create_pdf_bytes(questions_text)
        files.append(("question_files", ("questions.pdf", pdf_bytes, "application/pdf")))
        questions_text = ""
        print("[analysis-smoke] Generated a question PDF from --questions-text.")

    session_id = f"analysis-smoke-{uuid.uuid4().hex[:8]}"
    base_url = args.base_url.rstrip("/")
    async with httpx.AsyncClient(base_url=base_url, timeout=httpx.Timeout(args.timeout)) as client:
        print(f"[analysis-smoke] Submitting {len(files)} file(s) as session {session_id}")
        response = await _submit(
            client,
            session_id=session_id,
            syllabus_text=args.syllabus_text,
            questions_text=questions_text,
            files=files,
        )

    body = response.json()
    if response.status_code != 200:
        error = body.get("error", {})
        raise SystemExit(
            f"[analysis-smoke] Analysis failed ({response.status_code}): {error.get('message')} "
            f"details={json.dumps(error.get('details'))}"
        )

    if args.raw:
        print(json.dumps(body, indent=2))
        return
    print("[analysis-smoke] Summary:", json.dumps(body["summary"], indent=2))
    _print_view(body["view"])


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    asyncio.run(main_async(args))


if __name__ == "__main__":
    main()
