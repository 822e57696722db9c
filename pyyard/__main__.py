# pyYard Module - Command Line
# -*- coding: utf-8 -*-
"""
 Python module to collect lawn mower, sprinkler controller and weather data
 into a SQL database

 Command Line:
    python -m pyyard                     # collect once (for cron)
    python -m pyyard -loop [-interval N] # collect every N minutes (-interval alone also loops)
    python -m pyyard version

"""

import argparse
import logging
import sys
import time

# Modules
from pyyard import Collector, configure_logging, set_debug, version
from pyyard.config import load_settings
from pyyard.exceptions import PyYardInvalidConfigurationParameter

log = logging.getLogger("pyyard")


def build_parser():
    p = argparse.ArgumentParser(prog="pyYard", description=f"pyYard Module v{version}")
    p.add_argument("command", nargs="?", default="run", choices=["run", "version"],
                   help="run: collect and store a snapshot (default), version: print version")
    p.add_argument("-loop", action="store_true", default=False,
                   help="Keep running and collect on a fixed interval")
    p.add_argument("-interval", type=int, default=None,
                   help="Collect every N minutes, implies -loop [Default=PYYARD_INTERVAL or 15]")
    p.add_argument("-env", type=str, default=None, help="Path to dotenv file [Default=config/.env]")
    p.add_argument("-debug", action="store_true", default=False, help="Enable debug output")
    return p


def run_loop(collector, interval):
    """Run a collection at the start of every interval."""
    period = interval * 60
    while True:
        started = time.monotonic()
        collector.run()
        elapsed = time.monotonic() - started
        if elapsed > period:
            log.warning(f"Collection took {elapsed:.0f}s, longer than the {interval} minute interval")
        time.sleep(max(0.0, period - elapsed))


def main(argv=None):
    args = build_parser().parse_args(argv)

    if args.command == "version":
        print("pyYard [%s]" % version)
        return 0

    settings = load_settings(args.env)
    if args.interval is not None:
        settings.interval = args.interval
    configure_logging(settings.timezone, args.debug or settings.debug)
    if args.debug:
        set_debug(True)
    try:
        settings.validate_run()
    except PyYardInvalidConfigurationParameter as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    collector = Collector(settings)
    if args.loop or args.interval is not None:
        log.info(f"pyYard [{version}] collecting every {settings.interval} minute(s)")
        try:
            run_loop(collector, settings.interval)
        except KeyboardInterrupt:
            log.info("Stopped.")
        return 0

    result = collector.run()
    return 1 if result.get("error") else 0


if __name__ == "__main__":
    sys.exit(main())
