"""PRAMAAN CLI — command-line interface for the trust engine.

Usage:
    python -m pramaan.cli score --identity-verified --profile-complete --content 5
    python -m pramaan.cli level --score 72
    python -m pramaan.cli eligibility --score 75 --min 70
    python -m pramaan.cli register-user --id alice --email alice@example.com --name Alice --phone 555
    python -m pramaan.cli verify-identity --user alice
    python -m pramaan.cli recalculate --user alice
    python -m pramaan.cli post-job --company acme --title "Engineer" --description "Build" --min-score 60
    python -m pramaan.cli apply --user alice --job job_123
    python -m pramaan.cli check-policy
    python -m pramaan.cli status
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pramaan.config import get_settings
from pramaan.errors import PolicyError
from pramaan.log import configure_logging
from pramaan.models.trust import TrustFactors
from pramaan.models.user import UserRole
from pramaan.persistence.event_log import EventLog
from pramaan.persistence.repositories import (
    InMemoryApplicationRepository,
    InMemoryJobRepository,
    InMemoryUserRepository,
)
from pramaan.persistence.state_store import StateStore
from pramaan.policy.resolver import POLICY_FILENAME, PolicyResolver
from pramaan.service import PramaanService, ServiceResult
from pramaan.trust.eligibility import validate_job_application
from pramaan.trust.engine import TrustEngine


def _make_resolver(config_dir: Path) -> PolicyResolver:
    if (config_dir / POLICY_FILENAME).exists():
        return PolicyResolver.from_config_dir(config_dir)
    return PolicyResolver.default()


def _make_service(config_dir: Path, data_dir: Path) -> PramaanService:
    """Create a PramaanService with durable persistence."""
    data_dir.mkdir(parents=True, exist_ok=True)
    store = StateStore(storage_path=data_dir / "state.json")
    return PramaanService(
        _make_resolver(config_dir),
        users=InMemoryUserRepository(store),
        jobs=InMemoryJobRepository(store),
        applications=InMemoryApplicationRepository(store),
        event_log=EventLog(storage_path=data_dir / "events.jsonl"),
    )


def _report(result: ServiceResult) -> int:
    if result.success:
        print(json.dumps(result.data, indent=2, default=str))
        return 0
    print(f"Failed: {'; '.join(result.errors)}", file=sys.stderr)
    return 1


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


# ----------------------------------------------------------------------
# Pure commands (no persistence)
# ----------------------------------------------------------------------

def cmd_score(args: argparse.Namespace) -> int:
    engine = TrustEngine(_make_resolver(args.config))
    factors = TrustFactors(
        identity_verified=args.identity_verified,
        profile_complete=args.profile_complete,
        skill_verified=args.skill_verified,
    ).with_overrides(
        content_completed=args.content,
        positive_reviews=args.reviews,
        account_age=args.age,
    )
    breakdown = engine.score_breakdown(factors)
    score = breakdown["total"]
    print(json.dumps({
        "score": score,
        "level": engine.get_trust_level(score).value,
        "breakdown": breakdown,
        "recommendations": engine.get_improvement_recommendations(factors),
    }, indent=2))
    return 0


def cmd_level(args: argparse.Namespace) -> int:
    engine = TrustEngine(_make_resolver(args.config))
    progress = engine.get_trust_score_progress(args.score)
    print(json.dumps({
        "score": args.score,
        "level": progress.current_level.value,
        "next_level": engine.get_next_level_info(args.score).to_dict(),
        "color": progress.color,
    }, indent=2))
    return 0


def cmd_eligibility(args: argparse.Namespace) -> int:
    result = validate_job_application(args.score, args.min)
    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.eligible else 2


def cmd_check_policy(args: argparse.Namespace) -> int:
    """Load the policy file and report invariant violations."""
    try:
        resolver = PolicyResolver.from_config_dir(args.config)
    except PolicyError as e:
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    errors = resolver.validate()
    if errors:
        for error in errors:
            print(f"  - {error}", file=sys.stderr)
        return 1
    print(f"Policy OK: {args.config / POLICY_FILENAME}")
    return 0


# ----------------------------------------------------------------------
# Stateful commands
# ----------------------------------------------------------------------

def cmd_status(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    print(json.dumps(service.status(), indent=2))
    return 0


def cmd_register_user(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    metadata: dict[str, object] = {}
    if args.name:
        metadata["name"] = args.name
    if args.phone:
        metadata["phone"] = args.phone
    skills = _split_csv(args.skills)
    if skills:
        metadata["skills"] = skills
    return _report(service.register_user(
        user_id=args.id,
        email=args.email,
        role=UserRole(args.role),
        metadata=metadata,
    ))


def cmd_verify_identity(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    return _report(service.verify_identity(args.user, verified=not args.revoke))


def cmd_recalculate(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    return _report(service.recalculate_trust_score(args.user))


def cmd_post_job(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    return _report(service.post_job(
        company_id=args.company,
        title=args.title,
        description=args.description,
        min_trust_score=args.min_score,
        skills=_split_csv(args.skills),
        location=args.location or "",
        job_id=args.id,
    ))


def cmd_apply(args: argparse.Namespace) -> int:
    service = _make_service(args.config, args.data)
    resume_text = ""
    if args.resume:
        resume_text = args.resume.read_text(encoding="utf-8")
    return _report(service.apply_to_job(args.user, args.job, resume_text=resume_text))


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="pramaan",
        description="PRAMAAN — trust score engine CLI",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=settings.config_dir,
        help="Path to config directory (default: config/)",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=settings.data_dir,
        help="Path to data directory (default: data/)",
    )
    sub = parser.add_subparsers(dest="command")

    # score
    p_score = sub.add_parser("score", help="Score a set of trust factors")
    p_score.add_argument("--identity-verified", action="store_true")
    p_score.add_argument("--profile-complete", action="store_true")
    p_score.add_argument("--skill-verified", action="store_true")
    p_score.add_argument("--content", type=int, default=0, help="Completed learning modules")
    p_score.add_argument("--reviews", type=int, default=0, help="Positive reviews")
    p_score.add_argument("--age", type=int, default=0, help="Account age in days")

    # level
    p_level = sub.add_parser("level", help="Level and progress for a score")
    p_level.add_argument("--score", type=float, required=True)

    # eligibility
    p_elig = sub.add_parser("eligibility", help="Check a score against a job minimum")
    p_elig.add_argument("--score", type=float, required=True, help="User trust score")
    p_elig.add_argument("--min", type=float, required=True, help="Job minimum score")

    # check-policy
    sub.add_parser("check-policy", help="Validate the trust policy file")

    # status
    sub.add_parser("status", help="Show policy health and audit counts")

    # register-user
    p_reg = sub.add_parser("register-user", help="Register a user")
    p_reg.add_argument("--id", required=True, help="User ID")
    p_reg.add_argument("--email", required=True)
    p_reg.add_argument("--role", default="USER", choices=[r.value for r in UserRole])
    p_reg.add_argument("--name")
    p_reg.add_argument("--phone")
    p_reg.add_argument("--skills", help="Comma-separated skill list")

    # verify-identity
    p_verify = sub.add_parser("verify-identity", help="Mark a user's identity as verified")
    p_verify.add_argument("--user", required=True)
    p_verify.add_argument("--revoke", action="store_true", help="Clear verification instead")

    # recalculate
    p_recalc = sub.add_parser("recalculate", help="Recalculate and persist a user's score")
    p_recalc.add_argument("--user", required=True)

    # post-job
    p_job = sub.add_parser("post-job", help="Post a job (business accounts only)")
    p_job.add_argument("--company", required=True, help="Posting business user ID")
    p_job.add_argument("--title", required=True)
    p_job.add_argument("--description", required=True)
    p_job.add_argument("--min-score", type=int, default=0)
    p_job.add_argument("--skills", help="Comma-separated skill list")
    p_job.add_argument("--location")
    p_job.add_argument("--id", help="Job ID (generated if omitted)")

    # apply
    p_apply = sub.add_parser("apply", help="Apply to a job")
    p_apply.add_argument("--user", required=True)
    p_apply.add_argument("--job", required=True)
    p_apply.add_argument("--resume", type=Path, help="Path to a plain-text resume")

    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "score": cmd_score,
        "level": cmd_level,
        "eligibility": cmd_eligibility,
        "check-policy": cmd_check_policy,
        "status": cmd_status,
        "register-user": cmd_register_user,
        "verify-identity": cmd_verify_identity,
        "recalculate": cmd_recalculate,
        "post-job": cmd_post_job,
        "apply": cmd_apply,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1

    try:
        return handler(args)
    except (OSError, ValueError) as e:
        # Unreadable data directory or resume, tampered audit log.
        print(f"Failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
