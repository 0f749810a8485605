#!/usr/bin/env python3
"""Utility script to run ArtifactService on a local request payload.

This script:
1. Reads a JSON request (segments, system prompt, output schema, metadata)
   from the path given as first argument (default: transcript_request.json)
2. Processes it with the real OpenAI API, recording attempts in memory
3. Prints the attempt trail and saves the result to artifact_result.json
"""
import asyncio
import json
import sys
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Add parent directory to path to import services
sys.path.insert(0, str(Path(__file__).parent.parent))

from models.transcript_request import ProcessTranscriptRequest
from services.artifact_service import ArtifactService
from services.interaction_recorder import InMemoryInteractionRecorder


async def main():
    """Main execution function."""
    root = Path(__file__).parent.parent
    input_file = Path(sys.argv[1]) if len(sys.argv) > 1 else root / "transcript_request.json"
    output_file = root / "artifact_result.json"

    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}")
        sys.exit(1)

    print(f"Reading request from: {input_file}")
    with open(input_file, 'r', encoding='utf-8') as f:
        request = ProcessTranscriptRequest.model_validate(json.load(f))

    print(f"Segments: {len(request.transcript_segments)}")
    print("Processing with ArtifactService...")

    recorder = InMemoryInteractionRecorder()
    service = ArtifactService(recorder=recorder)
    result = await service.process_transcript(request)

    print("\nAttempt trail:")
    for attempt in recorder.attempts:
        status = attempt.error_code or ("valid" if attempt.is_valid else attempt.is_valid)
        print(
            f"  #{attempt.attempt_number} {attempt.stage.value:<10} "
            f"retry={attempt.retry_index} repair={attempt.is_repair_attempt} "
            f"final={attempt.is_final} status={status}"
        )

    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(result.model_dump(mode="json", exclude_none=True), f, indent=2, ensure_ascii=False)

    if result.is_success:
        print(f"\n✓ Artifact saved to: {output_file}")
    else:
        print(f"\n✗ Failed with {result.error.code.value}: {result.error.message}")
        if result.error.details:
            print(json.dumps(result.error.details, indent=2, ensure_ascii=False))
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
