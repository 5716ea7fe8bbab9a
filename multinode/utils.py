"""
Utility functions for the multi-node SQL consistency harness
"""

import json
import os
from typing import List, Dict, Any
from datetime import datetime
import logging

import aiohttp

from config import ClusterConfig, NodeAddress
from es_client import SqlRestClient
from models import VerificationResult

logger = logging.getLogger(__name__)

class ResultAnalyzer:
    """Analyze and report scenario results"""

    def __init__(self, output_dir: str = "results"):
        self.output_dir = output_dir

    def save_results(self, results: List[VerificationResult], filename: str = None):
        """Save scenario results to file"""
        os.makedirs(self.output_dir, exist_ok=True)
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"multinode_results_{timestamp}.json"

        output_path = os.path.join(self.output_dir, filename)

        serializable_results = []
        for result in results:
            serializable_results.append({
                "scenario": result.scenario,
                "entry_points": result.entry_points,
                "mode": result.mode,
                "document_count": result.document_count,
                "passed": result.passed,
                "expected": self._make_serializable(result.expected),
                "actual": self._make_serializable(result.actual),
                "mismatch": result.mismatch,
                "error": result.error,
                "execution_time": result.execution_time,
                "details": self._make_serializable(result.details)
            })

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(serializable_results, f, indent=2, ensure_ascii=False)

        logger.info(f"Results saved to {output_path}")
        return output_path

    def _make_serializable(self, obj: Any) -> Any:
        """Convert object to JSON serializable format"""
        if isinstance(obj, (list, tuple)):
            return [self._make_serializable(item) for item in obj]
        elif isinstance(obj, dict):
            return {str(key): self._make_serializable(value) for key, value in obj.items()}
        elif isinstance(obj, (int, float, str, bool, type(None))):
            return obj
        else:
            return str(obj)

    def generate_report(self, results: List[VerificationResult]) -> str:
        """Generate scenario report"""
        total = len(results)
        failed = [r for r in results if not r.passed]
        pass_rate = (total - len(failed)) / total * 100 if total > 0 else 0

        report = f"""
=== Multi-node SQL Consistency Report ===

Summary:
- Scenarios Run: {total}
- Failures: {len(failed)}
- Pass Rate: {pass_rate:.1f}%

Scenarios:
"""

        for result in results:
            status = "PASS" if result.passed else "FAIL"
            report += (
                f"- {result.scenario}: {status} ({result.document_count} documents, "
                f"{result.mode} mode, via {', '.join(result.entry_points)}, "
                f"{result.execution_time:.2f}s)\n"
            )

        if failed:
            report += "\nFailures:\n"
            for i, result in enumerate(failed, 1):
                if result.mismatch is not None:
                    report += f"{i}. {result.scenario}: Response does not match:\n{result.mismatch}\n"
                else:
                    report += f"{i}. {result.scenario}: {result.error}\n"

        return report

    def save_report(self, report: str, filename: str = None):
        """Save report to file"""
        os.makedirs(self.output_dir, exist_ok=True)
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"multinode_report_{timestamp}.txt"

        output_path = os.path.join(self.output_dir, filename)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write(report)

        logger.info(f"Report saved to {output_path}")
        return output_path

class HealthChecker:
    """Check that every configured entry point answers"""

    def __init__(self, cluster: ClusterConfig):
        self.cluster = cluster

    async def check_host(self, host: NodeAddress) -> bool:
        async with SqlRestClient(self.cluster, hosts=[host]) as client:
            try:
                info = await client.info()
            except (aiohttp.ClientError, ValueError) as e:
                logger.error(f"✗ {host.signature} is unhealthy: {e}")
                return False
        name = info.get('name', 'unnamed') if isinstance(info, dict) else 'unnamed'
        logger.info(f"✓ {host.signature} is healthy ({name})")
        return True

    async def check_all_health(self) -> Dict[str, bool]:
        """Check health of all entry points, one at a time"""
        health_status = {}
        for host in self.cluster.hosts:
            health_status[host.signature] = await self.check_host(host)
        return health_status

    def print_health_status(self, health_status: Dict[str, bool]):
        """Print health status summary"""
        print("\n=== Cluster Entry Point Status ===")
        healthy_count = sum(1 for status in health_status.values() if status)
        total_count = len(health_status)

        for signature, is_healthy in health_status.items():
            status = "✓ Healthy" if is_healthy else "✗ Unhealthy"
            print(f"{signature}: {status}")

        print(f"\nOverall: {healthy_count}/{total_count} entry points healthy")

        if healthy_count < total_count:
            print("⚠️  Some entry points are unhealthy. Scenario results may be affected.")

class ConfigValidator:
    """Validate configuration files"""

    @staticmethod
    def validate_config(config_data: Dict[str, Any]) -> List[str]:
        """Validate configuration data and return list of issues"""
        issues = []

        cluster = config_data.get('cluster')
        if cluster is None:
            issues.append("Missing cluster configuration")
        else:
            hosts = cluster.get('hosts')
            if not isinstance(hosts, list) or not hosts:
                issues.append("cluster.hosts must be a non-empty list")
            else:
                for i, host in enumerate(hosts):
                    issues.extend(ConfigValidator._validate_host(i, host))

            if cluster.get('scheme', 'http') not in ('http', 'https'):
                issues.append(f"Invalid scheme: {cluster['scheme']}")

            timeout = cluster.get('timeout_seconds')
            if timeout is not None and (not isinstance(timeout, (int, float)) or timeout <= 0):
                issues.append("Invalid timeout_seconds in cluster")

        settings = config_data.get('test_settings', {})

        modes = settings.get('modes', ['plain'])
        if not isinstance(modes, list) or not modes:
            issues.append("test_settings.modes must be a non-empty list")

        min_docs = settings.get('min_documents', 10)
        max_docs = settings.get('max_documents', 100)
        if not isinstance(min_docs, int) or min_docs <= 0:
            issues.append("Invalid min_documents in test_settings")
        elif not isinstance(max_docs, int) or max_docs < min_docs:
            issues.append("Invalid max_documents in test_settings")

        if not settings.get('index', 'test'):
            issues.append("Empty index name in test_settings")

        return issues

    @staticmethod
    def _validate_host(i: int, host: Any) -> List[str]:
        if isinstance(host, str):
            host_name, _, port = host.rpartition(':')
            if not host_name or not port.isdigit():
                return [f"Host {i} is not in host:port form: {host!r}"]
            port = int(port)
        elif isinstance(host, dict):
            if not host.get('host'):
                return [f"Missing or empty host for entry {i}"]
            port = host.get('port')
            if not isinstance(port, int):
                return [f"Missing or invalid port for entry {i}"]
        else:
            return [f"Host {i} must be a host:port string or an object"]

        if not (1 <= port <= 65535):
            return [f"Invalid port range for entry {i}: {port}"]
        return []
