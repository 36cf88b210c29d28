"""
ClassGuard - content moderation for mixed Greek / English classroom chat.
Command line entry point.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from internal.config.manager import ConfigManager
from internal.services.moderation import ModerationService
from lib.logging_utils import initLogging
from lib.moderation import LoadProgressEvent, ModerationError, ModerationMode
from lib.utils import jsonDumps

# Configure basic logging first
logging.basicConfig(format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", level=logging.INFO)
logger = logging.getLogger(__name__)


class ClassGuard:
    """Main orchestrator that wires configuration, logging and the moderation service."""

    def __init__(self, configPath: str = "config.toml", config_dirs: Optional[List[str]] = None):
        """Initialize all components."""
        self.configManager = ConfigManager(configPath, config_dirs)

        initLogging(self.configManager.getLoggingConfig())

        self.moderation = ModerationService.fromConfigManager(self.configManager)
        self.moderation.initialize()

    def importCorpus(self, path: str) -> None:
        stats = self.moderation.importCorpusFile(path)
        print(jsonDumps(stats, indent=2))

    def train(self, blacklist: List[str], whitelist: List[str]) -> None:
        for word in blacklist:
            self.moderation.blacklistWord(word)
        for word in whitelist:
            self.moderation.whitelistWord(word)
        # Flush a partial training batch
        self.moderation.saveModel()

    async def check(self, text: str, mode: Optional[ModerationMode]) -> None:
        """Classify one message and print the verdict, dood!"""
        if mode == ModerationMode.NEURAL or (mode is None and self.moderation.config.neuralMode):
            # A one-shot check has no later messages to benefit from a background load
            loaded = await self.moderation.loadNeuralModel(printProgress)
            if not loaded:
                logger.warning("Neural model is not available, using statistical classifier")

        verdict = await self.moderation.checkMessage(text, mode)
        print(jsonDumps(verdict.toDict(), indent=2))

    def printStats(self) -> None:
        print(jsonDumps(self.moderation.getStatus(), indent=2))


def printProgress(event: LoadProgressEvent) -> None:
    suffix = f" {event.file}" if event.file else ""
    print(f"[{event.progress:3d}%] {event.status}{suffix}", file=sys.stderr)


def parse_arguments():
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="ClassGuard - content moderation for classroom chat, dood!"
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.toml",
        help="Path to configuration file (default: config.toml)",
    )
    parser.add_argument(
        "--config-dir",
        action="append",
        help="Directory to search for .toml config files recursively (can be specified multiple times), dood!",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Pretty-print loaded configuration and exit, dood!",
    )
    parser.add_argument(
        "--check",
        metavar="TEXT",
        help="Classify TEXT and print the verdict as JSON",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in ModerationMode],
        help="Override the configured moderation mode for --check",
    )
    parser.add_argument(
        "--import",
        dest="import_file",
        metavar="FILE",
        help="Train the statistical classifier from a JSON corpus file",
    )
    parser.add_argument(
        "--blacklist",
        action="append",
        default=[],
        metavar="WORD",
        help="Train WORD as profane (can be specified multiple times)",
    )
    parser.add_argument(
        "--whitelist",
        action="append",
        default=[],
        metavar="WORD",
        help="Train WORD as clean (can be specified multiple times)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print model and service status as JSON",
    )
    args = parser.parse_args()
    args.config = os.path.abspath(args.config)

    if args.config_dir:
        args.config_dir = [os.path.abspath(dir_path) for dir_path in args.config_dir]

    return args


def prettyPrintConfig(config_manager: ConfigManager):
    """Pretty-print the loaded configuration, dood!"""
    print("=== ClassGuard Configuration ===")
    print()
    print(jsonDumps(config_manager.config, indent=2))
    print()
    print("=== Configuration loaded successfully, dood! ===")


def main():
    """Main entry point."""
    args = parse_arguments()

    try:
        if args.print_config:
            config_manager = ConfigManager(args.config, args.config_dir)
            prettyPrintConfig(config_manager)
            sys.exit(0)

        app = ClassGuard(configPath=args.config, config_dirs=args.config_dir)

        if args.import_file:
            app.importCorpus(args.import_file)
        if args.blacklist or args.whitelist:
            app.train(args.blacklist, args.whitelist)
        if args.check is not None:
            mode = ModerationMode(args.mode) if args.mode else None
            asyncio.run(app.check(args.check, mode))
        if args.stats:
            app.printStats()
    except KeyboardInterrupt:
        logger.info("Stopped by user")
    except ModerationError as e:
        logger.error(f"Moderation failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.error(f"ClassGuard crashed: {e}")
        logger.exception(e)
        sys.exit(1)


if __name__ == "__main__":
    main()
