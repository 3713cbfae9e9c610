#!/usr/bin/env python3
"""
Rate Config Seed Script

Writes the rate config document read by the API (RATE_CONFIG_PATH):
Miami-Dade and Broward local-delivery zips, the Miami warehouse as shipper,
the gallon box catalog, handling fees, lead times and the priority fee.

Usage:
    python scripts/seed_rate_config.py [--output config/rate_config.json] [--lead-time SKU=DAYS ...]
"""
import argparse
import json
import sys
from pathlib import Path

# Ensure the project root is importable when executing as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from checkout_rates.services.rate_config import load_rate_config  # noqa: E402

MIAMI_DADE_ZIPS = [
    "33010", "33012", "33013", "33014", "33015", "33016", "33017", "33018", "33030", "33031",
    "33032", "33033", "33034", "33035", "33039", "33054", "33055", "33056", "33101", "33102",
    "33107", "33109", "33111", "33112", "33114", "33116", "33119", "33121", "33122", "33124",
    "33125", "33126", "33127", "33128", "33129", "33130", "33131", "33132", "33133", "33134",
    "33135", "33136", "33137", "33138", "33139", "33140", "33141", "33142", "33143", "33144",
    "33145", "33146", "33147", "33149", "33150", "33151", "33152", "33153", "33154", "33155",
    "33156", "33157", "33158", "33160", "33161", "33162", "33163", "33164", "33165", "33166",
    "33167", "33168", "33169", "33170", "33172", "33173", "33174", "33175", "33176", "33177",
    "33178", "33179", "33180", "33181", "33182", "33183", "33184", "33185", "33186", "33187",
    "33188", "33189", "33190", "33193", "33194", "33196", "33197", "33199", "33242", "33243",
    "33245", "33247", "33255", "33256", "33257", "33261", "33265", "33266", "33269", "33280",
    "33283", "33296", "33299",
]

BROWARD_ZIPS = [
    "33004", "33009", "33019", "33020", "33021", "33022", "33023", "33024", "33025", "33026",
    "33027", "33028", "33029", "33060", "33061", "33062", "33063", "33064", "33065", "33066",
    "33067", "33068", "33069", "33071", "33073", "33074", "33075", "33076", "33077", "33081",
    "33082", "33083", "33084", "33301", "33302", "33303", "33304", "33305", "33306", "33307",
    "33308", "33309", "33310", "33311", "33312", "33313", "33314", "33315", "33316", "33317",
    "33318", "33319", "33320", "33321", "33322", "33323", "33324", "33325", "33326", "33327",
    "33328", "33329", "33330", "33331", "33332", "33334", "33335", "33336", "33337", "33338",
    "33339", "33340", "33345", "33346", "33348", "33349", "33351", "33355", "33359", "33388",
    "33394", "33441", "33442", "33443",
]

SHIPPER_ADDRESS = {
    "streetLines": ["9500 Northwest 12th Street", "Unit 6"],
    "city": "Miami",
    "stateOrProvinceCode": "FL",
    "postalCode": "33172-2831",
    "countryCode": "US",
}

BOX_SIZES = [
    {"name": "2-gallon", "length": 18, "width": 12, "height": 10, "maxWeightLbs": 30, "emptyWeightLbs": 2},
    {"name": "4-gallon", "length": 18, "width": 18, "height": 10, "maxWeightLbs": 55, "emptyWeightLbs": 3},
    {"name": "6-gallon", "length": 24, "width": 18, "height": 10, "maxWeightLbs": 80, "emptyWeightLbs": 4},
]

HANDLING_FEES = {
    "ground_per_order": 30,
    "air_per_order": 125,
}

LEAD_TIMES = {
    "default": 1,
}

PRIORITY_FEE_CENTS = 3000


def parse_lead_time(value: str) -> tuple:
    sku, sep, days = value.partition("=")
    if not sep or not sku or not days.isdigit():
        raise argparse.ArgumentTypeError(f"expected SKU=DAYS, got '{value}'")
    return sku, int(days)


def build_document(extra_lead_times: dict) -> dict:
    return {
        "local_delivery_zips": MIAMI_DADE_ZIPS + BROWARD_ZIPS,
        "shipper_address": SHIPPER_ADDRESS,
        "box_sizes": BOX_SIZES,
        "handling_fees": HANDLING_FEES,
        "lead_times": {**LEAD_TIMES, **extra_lead_times},
        "priority_fee": PRIORITY_FEE_CENTS,
    }


def main():
    parser = argparse.ArgumentParser(description="Write the rate config document")
    parser.add_argument("--output", default="config/rate_config.json",
                        help="Where to write the document (default: config/rate_config.json)")
    parser.add_argument("--lead-time", action="append", type=parse_lead_time, default=[],
                        metavar="SKU=DAYS", help="Per-SKU lead time, repeatable")
    parser.add_argument("--force", action="store_true", help="Overwrite an existing file")
    args = parser.parse_args()

    output = Path(args.output)
    if output.exists() and not args.force:
        print(f"{output} already exists, pass --force to overwrite", file=sys.stderr)
        sys.exit(1)

    document = build_document(dict(args.lead_time))
    output.parent.mkdir(parents=True, exist_ok=True)
    with open(output, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2)
        f.write("\n")

    # Read it back through the same loader the API uses
    config = load_rate_config(output)

    print(f"Rate config written to {output}")
    print(f"Local delivery zip codes: {len(config.local_delivery_zips)} entries")
    print(f"Box sizes: {len(config.boxes)} configurations")
    print(
        f"Handling fees: Ground=${config.handling_fees.ground_per_order}, "
        f"Air=${config.handling_fees.air_per_order}"
    )
    print(f"Priority fee: ${config.priority_fee_cents / 100:.2f}")


if __name__ == "__main__":
    main()
