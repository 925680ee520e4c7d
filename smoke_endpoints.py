#!/usr/bin/env python3
"""
Endpoint smoke check for a running Coordination API.

Probes every route with requests whose outcome is known without seeding
data: public reads succeed, unknown IDs are 404, and protected routes
reject anonymous callers. With --token, the authenticated read routes are
checked as well.

Usage:
    python smoke_endpoints.py --base-url http://localhost:8000
    python smoke_endpoints.py --base-url https://api.example.com --token <appwrite-jwt>

Requirements:
    pip install httpx rich
"""

import argparse
import asyncio
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

console = Console()

MISSING_ID = "smoke-missing-id"

ANONYMOUS_CHECKS = [
    # Health & docs
    ("GET", "/health", "Health Check", 200),
    ("GET", "/v1/docs", "API Documentation", 200),
    ("GET", "/openapi.json", "OpenAPI Schema", 200),
    # Events
    ("POST", "/events/register", "Register (401 expected)", 401, {"eventId": MISSING_ID}),
    # Teams
    ("GET", "/hackathon/teams?event_id=" + MISSING_ID, "List Event Teams", 200),
    ("GET", "/hackathon/teams?invite_code=ZZZZZZ", "Invite Preview (404 expected)", 404),
    ("GET", "/hackathon/teams", "Find Teams (400 expected)", 400),
    ("POST", "/hackathon/teams", "Create Team (401 expected)", 401,
     {"eventId": MISSING_ID, "teamName": "Smoke"}),
    ("POST", "/hackathon/teams/join", "Join Team (401 expected)", 401, {"inviteCode": "ZZZZZZ"}),
    ("POST", f"/hackathon/teams/{MISSING_ID}/lock", "Lock Team (401 expected)", 401),
    # Submissions
    ("GET", "/hackathon/submissions?event_id=" + MISSING_ID, "List Submissions", 200),
    ("POST", "/hackathon/submissions", "Submit Project (401 expected)", 401,
     {"eventId": MISSING_ID, "projectTitle": "Smoke", "projectDescription": "Smoke"}),
    # Blog
    ("GET", "/blog", "List Published Posts", 200),
    ("GET", f"/blog/{MISSING_ID}", "Read Post (404 expected)", 404),
    ("GET", "/blog/quota", "Quota (401 expected)", 401),
    ("GET", "/blog/admin", "Moderation Queue (401 expected)", 401),
    ("POST", f"/blog/{MISSING_ID}/approve", "Approve Post (401 expected)", 401),
]

AUTHENTICATED_CHECKS = [
    ("GET", "/blog/quota", "Quota", 200),
    ("POST", "/events/register", "Register (404 expected)", 404, {"eventId": MISSING_ID}),
    ("POST", "/hackathon/teams/join", "Join Team (404 expected)", 404, {"inviteCode": "ZZZZZZ"}),
]


class EndpointChecker:
    """Run endpoint checks and collect the results"""

    def __init__(self, base_url: str, token: Optional[str] = None):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.results: List[Dict[str, Any]] = []

    async def check_endpoint(
        self,
        client: httpx.AsyncClient,
        method: str,
        path: str,
        name: str,
        expected_status: int,
        data: Optional[Dict] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Check a single endpoint"""
        result = {
            "name": name,
            "method": method,
            "path": path,
            "expected": expected_status,
            "status": 0,
            "passed": False,
            "response_time": 0,
            "error": None,
            "response": None,
        }

        try:
            response = await client.request(method, path, json=data, headers=headers)
        except httpx.HTTPError as e:
            result["error"] = str(e)
            return result

        result.update(
            status=response.status_code,
            passed=response.status_code == expected_status,
            response_time=response.elapsed.total_seconds(),
        )
        try:
            result["response"] = response.json()
        except ValueError:
            result["response"] = response.text[:200]
        return result

    async def run_all_checks(self):
        """Run every applicable check"""
        console.print("\n[bold blue]Starting endpoint checks[/bold blue]\n")

        checks = [(check, None) for check in ANONYMOUS_CHECKS]
        if self.token:
            auth = {"Authorization": f"Bearer {self.token}"}
            checks += [(check, auth) for check in AUTHENTICATED_CHECKS]

        async with httpx.AsyncClient(base_url=self.base_url, timeout=30.0) as client:
            with Progress() as progress:
                task = progress.add_task("[cyan]Running checks...", total=len(checks))

                for (method, path, name, expected, *rest), headers in checks:
                    data = rest[0] if rest else None
                    result = await self.check_endpoint(
                        client, method, path, name, expected, data=data, headers=headers
                    )
                    self.results.append(result)
                    progress.update(task, advance=1)

                    icon = "[green]PASS[/green]" if result["passed"] else "[red]FAIL[/red]"
                    console.print(
                        f"{icon} {result['name']}: {result['status']} "
                        f"({result['response_time']:.2f}s)"
                    )

    def print_summary(self) -> int:
        """Print the results table; returns the number of failures"""
        console.print("\n[bold green]Results[/bold green]\n")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Status", width=8)
        table.add_column("Endpoint", width=40)
        table.add_column("Method", width=8)
        table.add_column("Expected", width=10)
        table.add_column("Got", width=10)
        table.add_column("Time", width=10)

        for result in self.results:
            style = "green" if result["passed"] else "red"
            table.add_row(
                f"[{style}]{'PASS' if result['passed'] else 'FAIL'}[/{style}]",
                result["name"],
                result["method"],
                str(result["expected"]),
                str(result["status"]),
                f"{result['response_time']:.2f}s",
            )

        console.print(table)

        failed = [r for r in self.results if not r["passed"]]
        console.print(f"\n[bold]Total:[/bold] {len(self.results)}")
        console.print(f"[bold green]Passed:[/bold green] {len(self.results) - len(failed)}")
        console.print(f"[bold red]Failed:[/bold red] {len(failed)}\n")

        for result in failed:
            console.print(f"[red]- {result['name']}[/red]")
            console.print(f"  {result['method']} {result['path']}")
            console.print(f"  Expected: {result['expected']}, Got: {result['status']}")
            if result["error"]:
                console.print(f"  Error: {result['error']}")
            elif isinstance(result["response"], dict) and "error_code" in result["response"]:
                console.print(f"  Error code: {result['response']['error_code']}")
            console.print()

        return len(failed)

    def save_results(self, filename: str = "smoke_results.json"):
        """Save results to a JSON file"""
        output = {
            "timestamp": datetime.now().isoformat(),
            "base_url": self.base_url,
            "total": len(self.results),
            "passed": sum(1 for r in self.results if r["passed"]),
            "results": self.results,
        }

        with open(filename, "w") as f:
            json.dump(output, f, indent=2)

        console.print(f"[green]Results saved to {filename}[/green]")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Smoke-check the Coordination API endpoints")
    parser.add_argument(
        "--base-url",
        default="http://localhost:8000",
        help="Base URL of the API (default: http://localhost:8000)",
    )
    parser.add_argument("--token", help="Appwrite JWT for the authenticated checks")
    parser.add_argument("--save", action="store_true", help="Save results to smoke_results.json")

    args = parser.parse_args()

    checker = EndpointChecker(args.base_url, token=args.token)
    console.print(f"[bold cyan]Checking API at:[/bold cyan] {args.base_url}\n")

    await checker.run_all_checks()
    failures = checker.print_summary()

    if args.save:
        checker.save_results()
    return failures


if __name__ == "__main__":
    raise SystemExit(1 if asyncio.run(main()) else 0)
