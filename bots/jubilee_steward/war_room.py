#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Steward's war-room report.

Four sections, printed in order:

* **Treasury health**: gas reserve, jUSDi value, runway against the monthly
  burn and whether the target APY covers that burn.
* **Development activity**: last commits and working-tree state of the
  current git repository, when there is one.
* **Strategic priorities**: what to fix first (funding, gas, diversification).
* **Recommendations**: allocation, phase-dependent rebalancing, risk rules.

All thresholds and ratios are pure functions so they can be checked without
a node.
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import cli_output
from input_validation import validate_chain
from logging_config import get_logger
from onchain import connect
from safe_math import format_units, from_units
from tx_errors import StewardError
from vault_config import NATIVE_DECIMALS, NATIVE_TOKEN, StewardConfig, load_config
from vault_position import VaultPosition, read_position

logger = get_logger(__name__)

GIT_TIMEOUT_S = 10


@dataclass(frozen=True)
class Priority:
    level: str
    icon: str
    task: str
    action: str


@dataclass
class GitActivity:
    commits: List[str] = field(default_factory=list)
    dirty: bool = False


def gas_icon(eth_balance: Decimal, reserve: Decimal) -> str:
    return "🟢" if eth_balance > reserve else "🟡"


def value_icon(value: Decimal) -> str:
    if value > 1000:
        return "🟢"
    if value > 100:
        return "🟡"
    return "🔴"


def runway_months(value: Decimal, monthly_burn: Decimal) -> Optional[Decimal]:
    """Months of burn the treasury covers; None when nothing is being burned."""
    if monthly_burn <= 0:
        return None
    return value / monthly_burn


def runway_icon(months: Optional[Decimal]) -> str:
    if months is None or months > 12:
        return "🟢"
    if months > 6:
        return "🟡"
    return "🔴"


def monthly_yield(value: Decimal, target_apy: Decimal) -> Decimal:
    return value * target_apy / 12


def is_sustainable(value: Decimal, target_apy: Decimal, monthly_burn: Decimal) -> bool:
    return monthly_yield(value, target_apy) >= monthly_burn


def growth_phase(value: Decimal) -> str:
    if value < 100:
        return "bootstrap"
    if value < 1000:
        return "growth"
    return "mature"


PHASE_ADVICE = {
    "bootstrap": "Bootstrap phase: Focus on jUSDi accumulation",
    "growth": "Growth phase: Add jBTCi for diversification",
    "mature": "Mature phase: Full multi-asset allocation",
}

ALLOCATION = (
    "70% jUSDi (stable, low-volatility yield)",
    "20% jBTCi (BTC exposure + arbitrage)",
    "10% jSOLi (high-yield, higher risk)",
)

RISK_RULES = (
    "Maintain 3-month runway minimum",
    "Never withdraw principal, only yield",
    "Monitor vault APYs and rebalance quarterly",
)


def strategic_priorities(
    stable_shares: int,
    eth_balance: Decimal,
    gas_reserve: Decimal,
    chain: str,
    vault_names: Sequence[str],
) -> List[Priority]:
    priorities = []
    if stable_shares == 0:
        priorities.append(Priority(
            level="HIGH",
            icon="🔴",
            task="Fund treasury with initial capital",
            action="Deposit USDC into jUSDi vault for sustainable yield",
        ))
    if eth_balance < gas_reserve:
        priorities.append(Priority(
            level="MEDIUM",
            icon="🟡",
            task="Replenish gas reserves",
            action="Fund wallet with ETH for transaction fees",
        ))
    if chain == "base" and "jSOLi" not in vault_names:
        priorities.append(Priority(
            level="LOW",
            icon="🔵",
            task="Diversify across chains",
            action="Consider deploying jSOLi vault on Solana for higher yield",
        ))
    return priorities


def git_activity(
    cwd: Optional[Path] = None,
    runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
) -> Optional[GitActivity]:
    """Last five commits and dirty flag, or None outside a git work tree."""

    def git(*args: str) -> str:
        result = runner(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_S,
            check=True,
        )
        return result.stdout

    try:
        if git("rev-parse", "--is-inside-work-tree").strip() != "true":
            return None
        log = git("log", "-5", "--pretty=format:%h - %s (%cr)")
        status = git("status", "--short")
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("git activity unavailable: %s", exc)
        return None
    return GitActivity(commits=[line for line in log.splitlines() if line], dirty=bool(status.strip()))


def _section(title: str) -> None:
    print(f"\n{title}")
    cli_output.rule("─")


def _find_stable_position(positions: Sequence[VaultPosition]) -> Optional[VaultPosition]:
    for position in positions:
        if position.ref.name == "jUSDi":
            return position
    return None


def run_war_room(
    chain: Optional[str] = None,
    config: Optional[StewardConfig] = None,
    w3=None,
    account=None,
    repo_dir: Optional[Path] = None,
) -> dict:
    config = config or load_config()
    chain = validate_chain(chain or config.default_chain, config)
    network = config.network(chain)

    cli_output.banner("⚔️  STEWARD'S WAR ROOM REPORT", "═")
    print(f"Generated: {datetime.now(timezone.utc).isoformat()}")
    print(f"Chain: {network.name.upper()}")
    seq = connect(network, config, w3=w3, account=account)

    positions = []
    for ref in network.vaults.values():
        try:
            positions.append(read_position(seq, ref))
        except StewardError as exc:
            cli_output.warn(f"{ref.name} unreadable: {exc.message}")

    # Treasury health
    _section("📊 TREASURY HEALTH")
    eth_wei = seq.balance_of(NATIVE_TOKEN)
    eth = from_units(eth_wei, NATIVE_DECIMALS)
    gas_text = format_units(eth_wei, NATIVE_DECIMALS)
    print(f"{gas_icon(eth, config.gas_reserve_min_eth)} Gas Reserve: {gas_text} ETH")

    stable = _find_stable_position(positions)
    value = stable.assets_value if stable is not None else Decimal(0)
    months = runway_months(value, config.monthly_burn_usd)
    sustainable = is_sustainable(value, config.target_apy, config.monthly_burn_usd)
    if stable is not None:
        print(f"{value_icon(value)} jUSDi Holdings: ${value:,.2f}")
        runway_text = f"{months:.1f} months" if months is not None else "unlimited"
        print(f"{runway_icon(months)} Runway: {runway_text} (@ ${config.monthly_burn_usd}/mo burn)")
        if sustainable:
            cli_output.ok("IMMORTAL: Yield covers burn rate")
        else:
            cli_output.warn("WARNING: Burn exceeds yield")
    for position in positions:
        if position.ref.name != "jUSDi" and position.shares > 0:
            print(f"🟢 {position.ref.name} Holdings: Present ({position.symbol}-denominated)")

    # Development activity
    _section("📝 RECENT DEVELOPMENT ACTIVITY")
    activity = git_activity(repo_dir)
    if activity is None:
        print("Not in a git repository")
    else:
        for line in activity.commits:
            print(line)
        if activity.dirty:
            cli_output.warn("\nUncommitted changes detected")
        else:
            cli_output.ok("\nWorking tree clean")

    # Priorities
    _section("🎯 STRATEGIC PRIORITIES")
    priorities = strategic_priorities(
        stable.shares if stable is not None else 0,
        eth,
        config.gas_reserve_min_eth,
        network.name,
        list(network.vaults),
    )
    if not priorities:
        cli_output.ok("All systems nominal")
    for i, priority in enumerate(priorities, start=1):
        print(f"{i}. {priority.icon} [{priority.level}] {priority.task}")
        print(f"   → {priority.action}")

    # Recommendations
    _section("💡 RECOMMENDATIONS")
    phase = growth_phase(value)
    print("1. 📈 Optimal allocation:")
    for line in ALLOCATION:
        print(f"   → {line}")
    print("\n2. 🔄 Rebalancing strategy:")
    print(f"   → {PHASE_ADVICE[phase]}")
    print("\n3. 🛡️ Risk management:")
    for line in RISK_RULES:
        print(f"   → {line}")

    print()
    cli_output.rule("═")
    cli_output.ok("Steward's Report Complete")
    print('"Nasdaq meets Sistine Chapel"\n')

    return {
        "eth": eth,
        "stable_value": value,
        "runway_months": months,
        "sustainable": sustainable,
        "phase": phase,
        "priorities": priorities,
        "git": activity,
    }


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Generate the steward's war-room report")
    parser.add_argument("chain", nargs="?", help="Network name (default: DEFAULT_CHAIN)")
    args = parser.parse_args(argv)
    return cli_output.run_command("war-room", "War Room generation", lambda: run_war_room(args.chain))


if __name__ == "__main__":
    sys.exit(main())
