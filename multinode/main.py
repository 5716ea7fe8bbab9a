"""
Multi-node SQL consistency harness

Checks that a SQL COUNT(*) returns the same answer whichever node of the
cluster receives it:
- index_spread: shards spread over every node, queried through any node
- index_on_wrong_node: shards kept off one node, queried through that node
"""

import asyncio
import logging
import sys

from config import Config
from scenarios import MultiNodeSqlTester
from utils import ConfigValidator, HealthChecker, ResultAnalyzer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

async def main(config_path: str = "config.json") -> int:
    """Main entry point"""
    config = Config(config_path)

    issues = ConfigValidator.validate_config(config.data)
    if issues:
        for issue in issues:
            logger.error(f"Configuration issue: {issue}")
        return 2

    health_checker = HealthChecker(config.cluster)
    health_checker.print_health_status(await health_checker.check_all_health())

    tester = MultiNodeSqlTester(config)
    await tester.setup()
    try:
        results = await tester.run_all()
    finally:
        await tester.cleanup()

    analyzer = ResultAnalyzer(config.settings.results_dir)
    report = analyzer.generate_report(results)
    print(report)
    analyzer.save_results(results)
    analyzer.save_report(report)

    failures = sum(1 for r in results if not r.passed)
    logger.info(f"Scenarios completed. Total: {len(results)}, failures: {failures}")
    return 1 if failures else 0

if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
