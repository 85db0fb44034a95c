#!/usr/bin/env python3
"""
BlindScore CLI - Command Line Interface for the confidential scoring engine

Provides:
- demo: Run the worked example end to end with an in-process attestor
- capacity: Show the largest safe submission cap for an accumulator
- config: Print the effective engine configuration
"""

import json
import logging
from typing import Optional

import click

from blindscore import __version__
from blindscore.attestation.crypto import AttestorKeyPair
from blindscore.attestation.toolkit import EncryptedInputBuilder, encrypt_metrics
from blindscore.config import EngineConfig, max_safe_capacity
from blindscore.contracts.models_v1 import SumPublishedV1
from blindscore.engine import ConfidentialScoringEngine
from blindscore.errors import BlindScoreError


@click.group()
@click.version_option(version=__version__, prog_name="blindscore")
@click.option('--verbose', '-v', is_flag=True, help='Verbose logging')
def main(verbose: bool):
    """BlindScore - confidential code-quality aggregation"""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option('--policy', nargs=4, type=int, default=(80, 70, 30, 5), show_default=True,
              help='cov_min style_min compl_max bugs_max')
@click.option('--metrics', nargs=4, type=int, default=(90, 60, 20, 2), show_default=True,
              help='coverage style complexity bugs')
@click.option('--submissions', '-n', type=int, default=2, show_default=True,
              help='How many identical submissions to fold')
@click.option('--attested-policy', is_flag=True, help='Set the policy through an attested input')
def demo(policy, metrics, submissions: int, attested_policy: bool):
    """Run the worked example and print the decrypted average"""
    try:
        _run_demo(policy, metrics, submissions, attested_policy)
    except BlindScoreError as e:
        raise click.ClickException(str(e))


def _run_demo(policy, metrics, submissions: int, attested_policy: bool) -> None:
    owner = "0x" + "a1" * 20
    attestor = AttestorKeyPair()
    engine = ConfidentialScoringEngine(owner=owner, config=EngineConfig.from_environment(), attestors=[attestor])

    if attested_policy:
        builder = EncryptedInputBuilder(engine.runtime, attestor, engine.engine_id, owner, engine.clock)
        for threshold in policy:
            builder.add16(threshold)
        engine.set_policy(owner, builder.encrypt())
    else:
        engine.set_policy_plain(owner, *policy)
    click.echo(f"Policy set (cov_min={policy[0]}, style_min={policy[1]}, "
               f"compl_max={policy[2]}, bugs_max={policy[3]})")

    for i in range(submissions):
        submitter = f"0x{i + 1:040x}"
        attested = encrypt_metrics(engine.runtime, attestor, engine.engine_id, submitter, *metrics,
                                   clock=engine.clock)
        result = engine.submit_metrics(submitter, attested)
        click.echo(f"Submission {result.submission_count} ingested (sum handle {result.sum_handle[:16]}...)")

    engine.publish_sum(owner)
    published = engine.emitter.of_type(SumPublishedV1)[-1]
    total, count, avg = engine.relay.decrypt_publication(published)
    click.echo(f"Published sum={total} count={count}")
    click.echo(f"Average={avg if avg is not None else 'n/a'}")


@main.command()
@click.option('--max-score', type=int, default=100, show_default=True, help='Highest per-submission score')
@click.option('--bits', type=int, default=16, show_default=True, help='Accumulator width in bits')
def capacity(max_score: int, bits: int):
    """Show the largest submission cap that cannot overflow the accumulator"""
    try:
        cap = max_safe_capacity(max_score, bits)
    except ValueError as e:
        raise click.BadParameter(str(e))
    click.echo(f"max_safe_capacity={cap} (worst-case sum {cap * max_score} < {1 << bits})")


@main.command(name="config")
@click.option('--file', 'config_file', type=click.Path(dir_okay=False), default=None,
              help='JSON config file (defaults to environment variables)')
def show_config(config_file: Optional[str]):
    """Print the effective engine configuration"""
    cfg = EngineConfig.load_from_file(config_file) if config_file else EngineConfig.from_environment()
    click.echo(json.dumps(cfg.model_dump(), indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
