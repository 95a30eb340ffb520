"""
Command-Line Interface for tts-gateway.

Synthesizes through the same GatewayService the HTTP server uses, without
running the server.

Usage Examples:
    # Single text synthesis
    tts-gateway --text "你好，世界" --out hello.mp3

    # Positional text, other voice, faster
    tts-gateway "你好" --voice zh-CN-YunxiNeural --rate 20 --out hi.mp3

    # Batch processing from file (one line = one item)
    tts-gateway --file inputs.txt --out output_dir/

    # Dry-run: print the SSML that would be sent, no network
    tts-gateway --text "Test" --dry-run --json

    # Voice catalog
    tts-gateway --voices --locale zh-CN
    tts-gateway --multitts > speakers.yaml

    # Run the HTTP server
    tts-gateway --serve --port 8000
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from tts_gateway.core.config import load_settings
from tts_gateway.core.errors import GatewayError
from tts_gateway.core.logging import configure_logging, fail, get_logger, info, set_request_id
from tts_gateway.services.gateway import GatewayService
from tts_gateway.upstream.synthesis import VoiceSynthesisRequest, build_ssml, extension_for_format
from tts_gateway.upstream.voices import to_multitts_yaml


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="tts-gateway CLI")

    # Input
    parser.add_argument("text_pos", nargs="?", help="Text to synthesize (positional)")
    parser.add_argument("--text", help="Text to synthesize")
    parser.add_argument("--file", help="Batch input file (1 line = 1 item)")

    # Output
    parser.add_argument("--out", help="Output path (file, or dir in batch mode)")

    # Synthesis overrides
    parser.add_argument("--voice", help="Voice short name")
    parser.add_argument("--rate", type=float, default=0, help="Rate adjustment, percent")
    parser.add_argument("--pitch", type=float, default=0, help="Pitch adjustment, percent")
    parser.add_argument("--format", dest="output_format", help="Upstream output format")

    # Modes
    parser.add_argument("--dry-run", action="store_true", help="Print SSML without synthesis")
    parser.add_argument("--json", action="store_true", help="Print JSON summary")
    parser.add_argument("--settings", help="Settings YAML path")

    # Catalog
    parser.add_argument("--voices", action="store_true", help="List catalog voices")
    parser.add_argument("--locale", help="Filter --voices by locale prefix, e.g. zh-CN")
    parser.add_argument("--multitts", action="store_true",
                        help="Export the catalog as a MultiTTS speaker list")

    # Server
    parser.add_argument("--serve", action="store_true", help="Run the HTTP server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def _load_texts(args: argparse.Namespace) -> List[str]:
    """
    Raises:
        SystemExit: No input, or conflicting inputs.
    """
    text = args.text or args.text_pos

    if args.file:
        if text:
            raise SystemExit("Use --file without --text or positional text.")
        lines = Path(args.file).read_text(encoding="utf-8").splitlines()
        items = [line.strip() for line in lines if line.strip()]
        if not items:
            raise SystemExit("Input file is empty.")
        return items

    if not text:
        raise SystemExit("Provide --text or a positional text.")
    return [text]


def _resolve_output_paths(args: argparse.Namespace, count: int, ext: str) -> List[Path]:
    if args.file:
        out_dir = Path(args.out or "out")
        out_dir.mkdir(parents=True, exist_ok=True)
        return [out_dir / f"item_{i + 1:03d}.{ext}" for i in range(count)]

    out_path = Path(args.out or f"out.{ext}")
    out_path.parent.mkdir(parents=True, exist_ok=True)
    return [out_path]


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("tts_gateway.main:app", host=args.host, port=args.port)
    return 0


def _catalog(args: argparse.Namespace, service: GatewayService) -> int:
    voices = service.list_voices()
    if args.locale:
        prefix = args.locale.lower()
        voices = [v for v in voices if v.locale.lower().startswith(prefix)]

    if args.multitts:
        document = to_multitts_yaml(voices)
        if args.out:
            Path(args.out).write_text(document, encoding="utf-8")
        else:
            sys.stdout.write(document)
        return 0

    if args.json:
        print(json.dumps([v.__dict__ for v in voices], ensure_ascii=False))
    else:
        for v in voices:
            print(f"{v.short_name:<48} {v.gender:<8} {v.local_name}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code (0 for success, 1 for upstream failures).
    """
    args = _parse_args(argv)

    if args.serve:
        return _serve(args)

    # Machine-readable output owns stdout; keep the console logger to errors
    quiet = args.json or (args.multitts and not args.out)
    configure_logging(level=1 if quiet else None, force=True)
    log = get_logger("tts-gateway.cli")
    set_request_id(str(uuid4())[:12])

    settings = load_settings(args.settings)
    synth_cfg = settings.get_gateway_config().synthesis
    voice = args.voice or synth_cfg.default_voice
    output_format = args.output_format or synth_cfg.default_output_format

    # Dry run needs no network and no service
    if args.dry_run:
        texts = _load_texts(args)
        out_paths = _resolve_output_paths(args, len(texts), extension_for_format(output_format))
        items = [
            {
                "text_len": len(t),
                "voice": voice,
                "format": output_format,
                "out": str(p),
                "ssml": build_ssml(t, voice, args.rate, args.pitch),
            }
            for t, p in zip(texts, out_paths)
        ]
        payload = {"ok": True, "dry_run": True, "items": items}
        if args.json:
            print(json.dumps(payload, ensure_ascii=False))
        else:
            info(log, "dry_run", items=len(items), voice=voice)
            for item in items:
                print(item["ssml"])
        print("DRY_RUN_OK")
        return 0

    service = GatewayService(settings)
    try:
        if args.voices or args.multitts:
            return _catalog(args, service)

        texts = _load_texts(args)
        out_paths = _resolve_output_paths(args, len(texts), extension_for_format(output_format))
        results = []

        for text, out_path in zip(texts, out_paths):
            info(log, "synth_start", chars=len(text), out=str(out_path))
            stream = service.synthesize(VoiceSynthesisRequest(
                text=text,
                voice=voice,
                rate=args.rate,
                pitch=args.pitch,
                output_format=output_format,
            ))
            with out_path.open("wb") as f:
                n = 0
                for chunk in stream.iter_bytes():
                    f.write(chunk)
                    n += len(chunk)
            results.append({"out": str(out_path), "bytes": n, "content_type": stream.content_type})

    except GatewayError as e:
        fail(log, "cli_failed", code=e.code)
        if args.json:
            print(json.dumps(e.to_dict(), ensure_ascii=False))
        else:
            print(f"[FAILED] {e.message}", file=sys.stderr)
        return 1
    finally:
        service.close()

    payload = {"ok": True, "dry_run": False, "items": results}
    if args.json:
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(payload)
    print("CLI_OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
