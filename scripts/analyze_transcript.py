"""Run the transcript analytics over a saved Gong transcript payload (no network).

Accepts either a full ``/calls/transcript`` response (``{"callTranscripts": [...]}``),
a list of ``{callId, transcript}`` records, or a bare list of transcript entries.

Usage:
    python scripts/analyze_transcript.py transcripts.json [--output-dir data/processed] [--text]
"""

import sys
import json
import argparse
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from dotenv import load_dotenv
load_dotenv()

from loguru import logger
from pipeline.orchestrator import build_transcript_response


def load_call_transcripts(path: str) -> list[dict]:
    """Read a payload file and return ``[{callId, transcript}, ...]``."""
    with open(path) as f:
        data = json.load(f)

    if isinstance(data, dict):
        if "callTranscripts" in data:
            return data["callTranscripts"] or []
        if "transcript" in data:
            return [data]
        raise ValueError(f"{path}: expected callTranscripts or transcript key")

    if isinstance(data, list):
        if data and all(isinstance(d, dict) and "transcript" in d for d in data):
            return data
        # Bare entry list for a single call
        return [{"callId": Path(path).stem, "transcript": data}]

    raise ValueError(f"{path}: unsupported payload type {type(data).__name__}")


def main():
    parser = argparse.ArgumentParser(description="Analyze saved Gong transcripts offline")
    parser.add_argument("input", help="JSON file with transcript payload")
    parser.add_argument("--output-dir", default=None, help="Write <callId>_analytics.json files here")
    parser.add_argument("--text", action="store_true", help="Print the conversation text of each call")
    args = parser.parse_args()

    call_transcripts = load_call_transcripts(args.input)
    logger.info(f"Loaded {len(call_transcripts)} transcript(s) from {args.input}")

    response = build_transcript_response(
        call_transcripts, [str(t.get("callId")) for t in call_transcripts]
    )

    if args.output_dir:
        output_dir = Path(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        for processed in response.call_transcripts:
            out_path = output_dir / f"{processed.call_id}_analytics.json"
            with open(out_path, "w") as f:
                json.dump(processed.model_dump(by_alias=True, mode="json"), f, indent=2)
            logger.info(f"Wrote {out_path}")

    print(f"\n{'Call':<24} {'Utter.':>6} {'Words':>6} {'Dur(s)':>8} {'Switch':>6} {'Sentiment':>10}")
    print("-" * 66)
    for processed in response.call_transcripts:
        a = processed.analytics
        print(
            f"{str(processed.call_id)[:23]:<24} {len(processed.transcript):>6} {a.total_words:>6} "
            f"{a.total_duration:>8.1f} {a.interaction_metrics.speaker_switches:>6} "
            f"{processed.sentiment.overall.value:>10}"
        )
        if args.text:
            print(processed.conversation_text)
            print()


if __name__ == "__main__":
    main()
