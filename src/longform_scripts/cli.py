"""
CLI entrypoint:
  longform-scripts --title "..." --topic "..." --duration 2400 [--points points.json]
  python -m longform_scripts --title "..." --topic "..." --duration 2400 --plan-content
"""

import argparse
import json
import os
import re
import sys
from datetime import datetime
from typing import Any, List, Optional


def _load_json(path: Optional[str]) -> Any:
    if not path:
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _content_points(data: Any) -> List[dict]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("contentPoints") or data.get("content_points") or []
    return [p for p in data if isinstance(p, dict)]


def _slug(title: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_")[:50] or "script"


def main(argv: Optional[List[str]] = None) -> int:
    from longform_scripts.adapters import default_adapters
    from longform_scripts.application.content_plan import content_plan_from_dict
    from longform_scripts.application.outline_generator import save_outline
    from longform_scripts.application.pipeline import LongFormScriptPipeline, build_report
    from longform_scripts.config import OUTPUT_DIR
    from longform_scripts.domain.errors import ConfigError
    from longform_scripts.domain.models import ScriptRequest

    parser = argparse.ArgumentParser(
        description="Generate a long-form video script in outline-enforced chunks"
    )
    parser.add_argument("--title", required=True, help="Video title")
    parser.add_argument("--topic", required=True, help="Video topic")
    parser.add_argument("--duration", type=int, required=True, help="Target duration in seconds")
    parser.add_argument("--points", type=str, help="JSON file with content points")
    parser.add_argument("--plan", type=str, help="JSON file with a chunk -> section content plan")
    parser.add_argument("--hook", type=str, default="", help="Opening hook line")
    parser.add_argument("--audience", type=str, help="Target audience description")
    parser.add_argument("--tone", type=str, default="", help="Tone of the script")
    parser.add_argument("--voice", type=str, help="JSON file with a voice profile")
    parser.add_argument("--output", type=str, help="Script output path (report is written next to it)")
    parser.add_argument("--save-outline", type=str, help="Write the generated outline JSON here")
    parser.add_argument(
        "--plan-content",
        action="store_true",
        help="Ask the model for a content plan when no outline is available",
    )
    args = parser.parse_args(argv)

    try:
        plan_data = _load_json(args.plan)
        request = ScriptRequest(
            title=args.title,
            topic=args.topic,
            duration_seconds=args.duration,
            content_points=_content_points(_load_json(args.points)),
            hook=args.hook,
            voice_params=_load_json(args.voice),
            audience=args.audience,
            tone=args.tone,
            content_plan=content_plan_from_dict(plan_data) if plan_data else None,
        )
    except (OSError, ValueError) as e:
        parser.error(str(e))

    pipeline = LongFormScriptPipeline(**default_adapters(), plan_content=args.plan_content)
    try:
        result = pipeline.run(request)
    except ConfigError as e:
        parser.error(str(e))

    output = args.output or os.path.join(
        OUTPUT_DIR, f"{_slug(args.title)}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.md"
    )
    os.makedirs(os.path.dirname(output) or ".", exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        f.write(result.script)
    report_path = os.path.splitext(output)[0] + "_report.json"
    with open(report_path, "w", encoding="utf-8") as f:
        json.dump(build_report(result), f, indent=2, ensure_ascii=False)

    if args.save_outline and result.outline is not None:
        save_outline(result.outline, args.save_outline)
        print(f"  📋 Outline saved to: {args.save_outline}")

    print(f"\n✅ Script saved to: {output}")
    print(f"📊 Report saved to: {report_path}")
    return 0 if result.completed else 1


if __name__ == "__main__":
    sys.exit(main())
