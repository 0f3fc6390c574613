"""Админка промокодов из командной строки.

    python -m hotel_promos.main list [--status active]
    python -m hotel_promos.main stats
    python -m hotel_promos.main show SUMMER20
    python -m hotel_promos.main create --file promo.json
    python -m hotel_promos.main update SUMMER20 --file promo.json
    python -m hotel_promos.main delete SUMMER20
    python -m hotel_promos.main enable SUMMER20
    python -m hotel_promos.main disable SUMMER20
    python -m hotel_promos.main verify SUMMER20 --room R1 --nights 3 --price 50000
"""
import argparse
import asyncio
import json
import sys

from hotel_promos.config import APP_ENV, IS_PROD, load_pg_config
from hotel_promos.db.pool import create_pool, ensure_schema
from hotel_promos.promos import promo_service, set_pg_pool
from hotel_promos.promos.model import Status
from hotel_promos.promos.policy import ALL, evaluate_status
from hotel_promos.promos.records import PromoValidationError
from hotel_promos.promos.service import PromoError
from hotel_promos.promos.storage import PromoStorageError
from hotel_promos.utils.logger import get_logger
from hotel_promos.utils.text import format_amount, promo_line

log = get_logger("main")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="hotel_promos", description="Promo code administration")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="list promo codes")
    p.add_argument("--status", default=ALL, choices=[ALL] + [s.value for s in Status])

    sub.add_parser("stats", help="count codes per status")

    for name in ("show", "delete", "enable", "disable"):
        sub.add_parser(name).add_argument("code")

    p = sub.add_parser("create", help="create a code from a JSON record")
    p.add_argument("--file", required=True)

    p = sub.add_parser("update", help="replace a code with a JSON record")
    p.add_argument("code")
    p.add_argument("--file", required=True)

    p = sub.add_parser("verify", help="check a code against a booking")
    p.add_argument("code")
    p.add_argument("--room", required=True)
    p.add_argument("--nights", type=int, required=True)
    p.add_argument("--price", type=float, required=True)

    return parser


def _load_record(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def run(args: argparse.Namespace) -> int:
    if args.command == "list":
        promos = await promo_service.list(args.status)
        if not promos:
            print("No promo codes found.")
        for p in promos:
            print(promo_line(p, evaluate_status(p).value))

    elif args.command == "stats":
        for key, value in (await promo_service.stats()).items():
            print(f"{key:<12} {value}")

    elif args.command == "show":
        print(json.dumps(await promo_service.export(args.code), ensure_ascii=False, indent=2))

    elif args.command == "create":
        promo = await promo_service.create(_load_record(args.file))
        print(f"Promo code {promo.code} created")

    elif args.command == "update":
        promo = await promo_service.update(args.code, _load_record(args.file))
        print(f"Promo code {promo.code} updated")

    elif args.command == "delete":
        await promo_service.delete(args.code)
        print(f"Promo code {args.code.upper()} deleted")

    elif args.command in ("enable", "disable"):
        promo = await promo_service.set_enabled(args.code, args.command == "enable")
        print(f"Promo code {promo.code}: {evaluate_status(promo).value}")

    elif args.command == "verify":
        result = await promo_service.verify(args.code, args.room, args.nights, args.price)
        if not result.ok:
            print(f"Refused: {result.reason.value}")
            return 1
        print(f"Discount: {format_amount(result.discount)}")
        print(f"Total:    {format_amount(result.final_price)}")

    return 0


async def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    pool = None
    if IS_PROD:
        pool = await create_pool(load_pg_config())
        await ensure_schema(pool)
        set_pg_pool(pool)
    else:
        log.debug("APP_ENV=%s → JSON storage", APP_ENV)

    try:
        return await run(args)
    except (PromoError, PromoValidationError, PromoStorageError) as e:
        print(f"Error: {e}")
        return 1
    finally:
        if pool is not None:
            await pool.close()


def cli() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
