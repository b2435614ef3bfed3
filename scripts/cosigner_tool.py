#!/usr/bin/env python3
"""
Off-chain tooling for cosigner authorizations.

Usage:
    python scripts/cosigner_tool.py encode --cost 1000 --coverage 6000 \\
        --arrears 86400 --expiration 1893456000
    python scripts/cosigner_tool.py decode 0x...
    python scripts/cosigner_tool.py digest --registry 0x... --loan-id 7 \\
        --cost 1000 --coverage 6000 --arrears 86400 --expiration 1893456000
    python scripts/cosigner_tool.py sign --key 0x... --registry 0x... \\
        --loan-id 7 --cost 1000 --coverage 6000 --arrears 86400 \\
        --expiration 1893456000

``sign`` prints the full 99-byte authorization a registry passes to
``request_cosign``.  Integers accept decimal or 0x-prefixed hex.

Exit codes: 0 on success, 1 on a cosigner error (its code is printed to
stderr), 2 on unusable input.
"""

import argparse
import json
import sys
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from cosigner_kernel.domain.authorization import CosignerData, decode_data, encode_data
from cosigner_kernel.domain.signature import compute_digest, sign_authorization
from cosigner_kernel.exceptions import CosignerKernelError
from cosigner_kernel.logging_config import configure_logging


def _int(value: str) -> int:
    return int(value, 0)


def _hex_bytes(value: str) -> bytes:
    text = value[2:] if value.lower().startswith("0x") else value
    return bytes.fromhex(text)


def _add_data_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--cost", type=_int, required=True, help="Fee in the loan currency (uint128)")
    p.add_argument("--coverage", type=_int, required=True, help="Basis points 1..10000 (uint16)")
    p.add_argument("--arrears", type=_int, required=True, help="Required arrears in seconds (uint64)")
    p.add_argument("--expiration", type=_int, required=True, help="Unix expiration (uint64)")


def _add_loan_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--registry", required=True, help="Loan registry address")
    p.add_argument("--loan-id", type=_int, required=True, help="Loan identifier (uint256)")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Encode, decode, hash and sign cosigner authorizations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_encode = sub.add_parser("encode", help="Print the 34-byte data blob")
    _add_data_args(p_encode)

    p_decode = sub.add_parser("decode", help="Print the fields of a data blob as JSON")
    p_decode.add_argument("blob", type=_hex_bytes, help="Hex data blob or full authorization")

    p_digest = sub.add_parser("digest", help="Print the digest a delegate signs")
    _add_loan_args(p_digest)
    _add_data_args(p_digest)

    p_sign = sub.add_parser("sign", help="Print a signed 99-byte authorization")
    p_sign.add_argument("--key", required=True, help="Delegate private key (hex)")
    _add_loan_args(p_sign)
    _add_data_args(p_sign)

    return parser.parse_args(argv)


def _data(args: argparse.Namespace) -> CosignerData:
    return CosignerData(
        cost=args.cost,
        coverage=args.coverage,
        required_arrears=args.arrears,
        expiration=args.expiration,
    )


def run(args: argparse.Namespace) -> str:
    if args.command == "encode":
        return "0x" + encode_data(args.cost, args.coverage, args.arrears, args.expiration).hex()

    if args.command == "decode":
        data = decode_data(args.blob)
        return json.dumps(
            {
                "cost": data.cost,
                "coverage": data.coverage,
                "required_arrears": data.required_arrears,
                "expiration": data.expiration,
            },
            sort_keys=True,
        )

    if args.command == "digest":
        digest = compute_digest(
            args.registry,
            args.loan_id,
            args.cost,
            args.coverage,
            args.arrears,
            args.expiration,
        )
        return "0x" + digest.hex()

    blob = sign_authorization(args.key, args.registry, args.loan_id, _data(args))
    return "0x" + blob.hex()


def main(argv: list[str] | None = None) -> int:
    configure_logging(level="WARNING")
    args = _parse_args(argv)
    try:
        output = run(args)
    except CosignerKernelError as exc:
        print(f"Error [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
