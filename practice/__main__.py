import argparse
import asyncio
import logging

from patti.models import TableConfig, Variant

from .server import run_server


def main() -> None:
    # CLI doubles as documentation for common table toggles.
    parser = argparse.ArgumentParser(description="Teen Patti practice server (you vs house bots)")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=9876)
    parser.add_argument("--bots", type=int, default=3, help="Number of house bots at the table")
    parser.add_argument("--starting-stack", type=int, default=5_000)
    parser.add_argument("--boot", type=int, default=10)
    parser.add_argument("--variant", choices=[variant.value for variant in Variant], default=Variant.CLASSIC.value)
    parser.add_argument(
        "--move-time",
        type=int,
        default=30_000,
        help="Move time in milliseconds before your seat is packed (0 disables the timer)",
    )
    parser.add_argument(
        "--think-scale",
        type=float,
        default=1.0,
        help="Multiplier on house bot thinking time (0 makes bots act instantly)",
    )
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    config = TableConfig(
        seats=args.bots + 1,
        starting_stack=args.starting_stack,
        boot=args.boot,
        move_time_ms=args.move_time,
        variant=Variant(args.variant),
        think_time_scale=args.think_scale,
    )
    asyncio.run(run_server(args.host, args.port, config, bots=args.bots))


if __name__ == "__main__":
    main()
