import argparse
from pathlib import Path

from . import __version__
from .env import Settings, load_env
from .logger import get_logger
from .pipeline import run_build, validate_manual_file
from .resilience import assess, EpochScores, ExposureResolution, SOURCE_PRIMARY, tier_number
from .storage import DatasetError


def cmd_build(args: argparse.Namespace) -> None:
    settings = Settings.from_env(data_dir=args.data_dir, output_dir=args.output_dir)
    get_logger().set_level(settings.log_level)
    if args.workers < 1:
        raise SystemExit("--workers must be at least 1")
    try:
        summary = run_build(settings, fresh=args.fresh, workers=args.workers)
    except DatasetError as e:
        raise SystemExit(str(e))

    print(f"Built {summary['total']} careers ({summary['sourced']} sourced, {summary['manual']} manual)")
    print(f"Classified: {summary['classified']}")
    for tier, count in summary["classification_counts"].items():
        print(f"  {tier}: {count}")
    if summary["datasets_missing"]:
        print(f"Missing datasets: {', '.join(summary['datasets_missing'])}")
    if summary["failed_records"]:
        print(f"Records with failed steps: {len(summary['failed_records'])}")
    for path in summary["outputs"]:
        print(f"Wrote {path}")


def cmd_classify(args: argparse.Namespace) -> None:
    if not 0 <= args.exposure <= 1:
        raise SystemExit("--exposure must be within [0, 1]")
    # Spread the sum evenly so the total is preserved
    per_field, extra = divmod(args.epoch_sum, 5)
    values = [per_field + (1 if i < extra else 0) for i in range(5)]
    try:
        epoch = EpochScores(*values)
    except ValueError:
        raise SystemExit("--epoch-sum must be within [5, 25]")

    a = assess(ExposureResolution(args.exposure, SOURCE_PRIMARY), args.growth, epoch)
    print(f"Exposure:        {a.exposure_score.label} ({a.exposure_score.points})")
    print(f"Growth:          {a.growth_score.label} ({a.growth_score.points})")
    print(f"Human advantage: {a.advantage_score.label} ({a.advantage_score.points})")
    print(f"Total:           {a.result.total_score}/6")
    print(f"Tier:            {a.result.tier} ({tier_number(a.result.tier)})")
    print(f"Rationale:       {a.result.rationale}")


def cmd_validate_manual(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input not found: {input_path}")
    errors = validate_manual_file(input_path)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def main(argv=None):
    # Load .env if present (CAREERDATA_DATA_DIR, CAREERDATA_LOG_LEVEL, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="careerdata", description="Career dataset builder with AI Resilience classification")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    bld = subparsers.add_parser("build", help="Merge all datasets and write careers.json and careers-index.json")
    bld.add_argument("--data-dir", help="Input data root (default: $CAREERDATA_DATA_DIR or data)")
    bld.add_argument("--output-dir", help="Output directory (default: <data-dir>/output)")
    bld.add_argument("--fresh", action="store_true", help="Rebuild the cached exposure dataset")
    bld.add_argument("--workers", type=int, default=1, help="Merge occupations on N threads (default 1)")
    bld.set_defaults(func=cmd_build)

    cls = subparsers.add_parser("classify", help="Score one set of inputs and print the tier")
    cls.add_argument("--exposure", type=float, required=True, help="AI task exposure in [0, 1]")
    cls.add_argument("--growth", type=float, required=True, help="Projected employment change, percent")
    cls.add_argument("--epoch-sum", type=int, required=True, help="Sum of the five EPOCH scores (5-25)")
    cls.set_defaults(func=cmd_classify)

    val = subparsers.add_parser("validate-manual", help="Validate manual career files")
    val.add_argument("--input", required=True, help="careers.json or a directory of YAML files")
    val.set_defaults(func=cmd_validate_manual)

    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
