"""
Command-line interface for spectral event analysis.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from bandpulse.config import SUPPORTED_FFT_SIZES, AnalyzerConfig, ConfigError
from bandpulse.pipeline import AnalysisPipeline


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bandpulse",
        description="Extract band intensities, beats and shakes from audio files",
    )

    parser.add_argument(
        "input",
        type=Path,
        help="Input audio file (wav, mp3, flac)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Output manifest file path (default: <input>_events.json)",
    )
    parser.add_argument(
        "--format",
        choices=["json", "numpy"],
        default="json",
        help="Output format (default: json)",
    )

    # Analyzer
    parser.add_argument("-b", "--bands", type=int, default=16, help="Number of bands, 1-64 (default: 16)")
    parser.add_argument(
        "--fft-size", type=int, default=2048, choices=SUPPORTED_FFT_SIZES,
        help="FFT resolution (default: 2048)",
    )
    parser.add_argument(
        "-s", "--sample-rate", type=int, default=44100,
        help="Audio sample rate for analysis (default: 44100)",
    )
    parser.add_argument(
        "--update-frequency", type=float, default=120.0,
        help="Analysis passes per second (default: 120)",
    )
    parser.add_argument(
        "--tick-rate", type=int, default=60,
        help="Simulated host ticks per second (default: 60)",
    )
    parser.add_argument("--smoothing", type=float, default=0.2, help="Smoothing factor in (0, 1) (default: 0.2)")
    parser.add_argument("--sensitivity", type=float, default=1.0, help="Intensity gain (default: 1.0)")
    parser.add_argument("--beat-threshold", type=float, default=0.1, help="Beat threshold (default: 0.1)")
    parser.add_argument("--shake-threshold", type=float, default=0.25, help="Shake threshold (default: 0.25)")
    parser.add_argument(
        "--shake-cooldown", type=float, default=0.5,
        help="Minimum seconds between shakes (default: 0.5)",
    )

    parser.add_argument("--no-cache", action="store_true", help="Ignore and do not reuse cached manifests")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--summary", action="store_true", help="Print manifest summary to stdout")
    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.input.exists():
        print(f"Error: Input file not found: {args.input}", file=sys.stderr)
        return 1

    output_path = args.output
    if output_path is None:
        suffix = ".npz" if args.format == "numpy" else ".json"
        output_path = args.input.with_name(f"{args.input.stem}_events{suffix}")

    try:
        config = AnalyzerConfig(
            num_bands=args.bands,
            fft_size=args.fft_size,
            sample_rate=args.sample_rate,
            update_frequency=args.update_frequency,
            smoothing=args.smoothing,
            sensitivity=args.sensitivity,
            beat_threshold=args.beat_threshold,
            shake_threshold=args.shake_threshold,
            shake_cooldown=args.shake_cooldown,
        )
        pipeline = AnalysisPipeline(config=config, tick_rate=args.tick_rate)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if not args.quiet:
        print(f"Processing: {args.input}")
        print(f"Bands: {config.num_bands}  FFT: {config.fft_size}  Update: {config.update_frequency:g} Hz")

    result = pipeline.process(
        args.input,
        output_path=output_path,
        format=args.format,
        use_cache=not args.no_cache,
    )

    if not args.quiet:
        print(f"Duration: {result['duration']:.2f}s")
        print(f"Samples: {result['n_samples']}")
        print(f"Beats: {result['n_beats']}")
        print(f"Shakes: {result['n_shakes']}")
        print(f"Output: {result['output_path']}")

    if args.summary:
        manifest = result["manifest"]
        print("\n--- Manifest Summary ---")
        print(json.dumps(manifest["metadata"], indent=2))

        samples = manifest["samples"]
        if len(samples) > 0:
            print(f"\nFirst sample: {json.dumps(samples[0])}")
        beats = manifest["events"]["beats"]
        if beats:
            print(f"\nFirst beats: {json.dumps(beats[:5])}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
