#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

from restaurant_ops.core.config import IS_DEV, IS_TEST  # noqa: E402
from restaurant_ops.core.database import Base, SessionLocal, engine  # noqa: E402
from restaurant_ops.core.errors import AppError  # noqa: E402
import restaurant_ops.models  # noqa: E402,F401
from restaurant_ops.services.businesses import create_business  # noqa: E402
from restaurant_ops.whatsapp.service import WhatsAppService  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cria um business (e opcionalmente vincula o WhatsApp) para DEV.")
    parser.add_argument("--sub-domain", required=True, help="Subdomínio do business")
    parser.add_argument("--name", required=True, help="Nome do business")
    parser.add_argument("--local-id", action="append", default=[], help="localId de uma unidade (repetível)")
    parser.add_argument("--waba-id", help="WhatsApp Business Account ID")
    parser.add_argument("--phone-number-id", help="Phone number ID da Cloud API")
    parser.add_argument("--access-token", help="Token de acesso da Cloud API")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    if not (IS_DEV or IS_TEST):
        print("Seed disponível apenas em dev/test.")
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        business = create_business(
            db,
            args.sub_domain,
            args.name,
            [{"local_id": local_id, "name": local_id} for local_id in args.local_id],
        )
        if args.waba_id or args.phone_number_id or args.access_token:
            WhatsAppService().link_account(
                db,
                business.sub_domain,
                waba_id=args.waba_id,
                phone_number_id=args.phone_number_id,
                access_token=args.access_token,
            )
        summary = f"Business criado: sub_domain={business.sub_domain} id={business.id}"
    except AppError as exc:
        print(exc.message)
        return 1
    finally:
        db.close()

    print(summary)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
