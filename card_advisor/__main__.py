"""
Command-line entry point

    python -m card_advisor advise user-1 1000 --risk-level AGGRESSIVE
    python -m card_advisor review user-1
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence

from card_advisor.config import Settings
from card_advisor.core.logging import setup_logging
from card_advisor.domain.errors import AdviceError, ValidationError
from card_advisor.domain.models import CardType, PriceRange, RiskLevel
from card_advisor.services.advice_service import AdviceService
from card_advisor.utils.serialization import to_jsonable

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="card-advisor", description="Trading card investment advice")
    commands = parser.add_subparsers(dest="command", required=True)

    advise = commands.add_parser("advise", help="Generate investment advice")
    advise.add_argument("user_id", type=str)
    advise.add_argument("amount", type=str, help="Amount to invest")
    advise.add_argument("--risk-level", default=RiskLevel.MODERATE.value, choices=[r.value for r in RiskLevel])
    advise.add_argument("--time-horizon", type=int, default=180, help="Days")
    advise.add_argument("--price-range", default=PriceRange.ALL.value, choices=[p.value for p in PriceRange])
    advise.add_argument("--card-types", type=str, default=None,
                        help=f"Comma-separated subset of {','.join(c.value for c in CardType)}")
    advise.add_argument("--min-price", type=str, default=None, help="Lower bound for CUSTOM price range")
    advise.add_argument("--max-price", type=str, default=None, help="Upper bound for CUSTOM price range")

    review = commands.add_parser("review", help="Review an existing portfolio")
    review.add_argument("user_id", type=str)
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> dict:
    async with AdviceService(settings) as service:
        if args.command == "review":
            return to_jsonable(await service.assess_portfolio_risk(args.user_id))

        card_types = None
        if args.card_types:
            card_types = [t.strip() for t in args.card_types.split(",") if t.strip()]
        response = await service.generate_investment_advice(
            args.user_id,
            args.amount,
            risk_level=args.risk_level,
            time_horizon=args.time_horizon,
            price_range=args.price_range,
            card_types=card_types,
            custom_min_price=args.min_price,
            custom_max_price=args.max_price,
        )
        return response.to_dict()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings()
    setup_logging(settings.LOG_LEVEL)

    try:
        result = asyncio.run(run(args, settings))
    except ValidationError as exc:
        logger.error(f"Invalid request: {exc}")
        return 2
    except AdviceError as exc:
        logger.error(f"Advice failed: {exc}")
        return 1

    json.dump(result, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
