#!/usr/bin/env python3
import os, sys
if __package__ is None or __package__ == "":
    sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import argparse
import logging

from config import load_settings
from controller import DashboardController
from models import Coordinate
from views import CLICK_PLACEHOLDER_NAME, card_as_text, detail_card


def main(argv=None):
    parser = argparse.ArgumentParser(description="ForestWatch CLI (map-point risk explorer)")
    parser.add_argument("--lat", type=float, required=True, help="Latitude (e.g. 4.61)")
    parser.add_argument("--lng", type=float, required=True, help="Longitude (e.g. -74.08)")
    parser.add_argument("--name", type=str, default=CLICK_PLACEHOLDER_NAME,
                        help="Name shown when the point cannot be reverse-geocoded")
    args = parser.parse_args(argv)

    cfg = load_settings()
    logging.basicConfig(level=cfg.log_level, format="[%(levelname)s] %(message)s")

    controller = DashboardController(cfg)
    try:
        pending = controller.select(Coordinate(args.lat, args.lng), args.name)
        if pending is None:
            print("No data for this point.")
            return 1
        print(card_as_text(detail_card(controller.selection)))
        print("\n...waiting for AI diagnosis...\n")
        pending.result()
        print(card_as_text(detail_card(controller.selection)))
    finally:
        controller.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
