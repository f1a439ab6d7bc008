#!/usr/bin/env python3
"""
Write sample history, water and feeding records to the realtime database.

Useful to try the charts on an empty database:

    python scripts/populate_sample_data.py --count 48
"""
import os
import sys
import random
import argparse
import logging
import time
from dotenv import load_dotenv

# Add project root to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

load_dotenv()

from poultry_ops.infrastructure.config import ConfigLoader
from poultry_ops.infrastructure.database import FirebaseClient, init_firebase_connection

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

HOUR = 60 * 60


def populate_history(client, config, count, now):
    """Hourly temperature and humidity points ending now."""
    path = config.path('logs', 'history')
    for i in range(count):
        timestamp = now - (count - i) * HOUR
        client.set(f"{path}/{timestamp}", {
            "timestamp": timestamp,
            "temperature": round(20 + random.random() * 15, 1),
            "humidity": round(40 + random.random() * 40, 1)
        })
    logger.info(f"{count} history points written to /{path}")


def populate_water(client, config, count, now):
    path = config.path('logs', 'water')
    flow_rate = config.get_water_flow_rate()
    for i in range(count):
        timestamp = now - (count - i) * HOUR
        volume = random.randint(500, 1500)
        client.set(f"{path}/{timestamp}", {
            "timestamp": timestamp,
            "volumeDispensed": volume,
            "durationSeconds": volume / flow_rate
        })
    logger.info(f"{count} water logs written to /{path}")


def populate_feeding(client, config, count, now):
    path = config.path('logs', 'feeding')
    rates = config.get('calibration.feeding_rates')
    seconds_per_gram = config.get('calibration.servo_open_time_per_gram')
    for i in range(count):
        timestamp = now - (count - i) * HOUR
        age_group = random.choice(list(rates))
        chicken_count = random.randint(5, 20)
        grams = rates[age_group] * chicken_count
        client.set(f"{path}/{timestamp}", {
            "timestamp": timestamp,
            "gramsDispensed": grams,
            "ageGroup": age_group,
            "chickenCount": chicken_count,
            "servoOpenTime": grams * seconds_per_gram,
            "feedType": "recommended"
        })
    logger.info(f"{count} feeding logs written to /{path}")


def main():
    parser = argparse.ArgumentParser(description="Populate the database with sample records")
    parser.add_argument("--count", type=int, default=24, help="Records per log (one per hour)")
    parser.add_argument(
        "--only",
        choices=["history", "water", "feeding"],
        help="Populate a single log"
    )
    args = parser.parse_args()

    config = ConfigLoader(load_env=False)
    init_firebase_connection(config)
    client = FirebaseClient()
    now = int(time.time())

    populators = {
        "history": populate_history,
        "water": populate_water,
        "feeding": populate_feeding,
    }
    for name, populate in populators.items():
        if args.only and args.only != name:
            continue
        populate(client, config, args.count, now)

    print("Sample data written.")


if __name__ == "__main__":
    main()
