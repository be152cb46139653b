"""Script to validate the registered leave workflow definitions

Usage:
    python scripts/validate_definitions.py
    python scripts/validate_definitions.py --dry-run   # walk every chain in memory
    python scripts/validate_definitions.py --dry-run --start-date 2026-03-09
"""
import argparse
from datetime import date, timedelta
from typing import List, Optional

from leaveflow.domain.enums import DecisionOutcome, LeaveType, Role
from leaveflow.domain.errors import WorkflowDefinitionError
from leaveflow.domain.models import ActorContext, LeaveRequestDraft, MissionDetails
from leaveflow.engine import LeaveWorkflowEngine, WorkflowRegistry, build_default_registry
from leaveflow.repositories import InMemoryLeaveRequestRepository
from leaveflow.utils import format_iso, parse_iso, setup_logging, utc_now

DRY_RUN_TENANT = "dry-run-tenant"


def describe(registry: WorkflowRegistry) -> None:
    print("=" * 60)
    print(f"LEAVE WORKFLOWS ({len(registry)} leave types)")
    print("=" * 60)
    for leave_type, definition in registry.definitions.items():
        print(f"\n[{leave_type.value}]")
        if not definition.steps:
            print("   (auto-approved, no review steps)")
        for i, step in enumerate(definition.steps, start=1):
            roles = ", ".join(sorted(r.value for r in step.required_roles))
            conditional = " (conditional)" if step.condition or step.predicate else ""
            print(f"   {i}. {step.name}{conditional} -> roles: {roles}")
        print(f"   cancel roles: {', '.join(sorted(r.value for r in definition.cancel_roles))}")


def dry_run(registry: WorkflowRegistry, start: Optional[date] = None) -> List[str]:
    """Approve every step of every leave type; return failures"""
    engine = LeaveWorkflowEngine(InMemoryLeaveRequestRepository(), registry=registry)
    employee = ActorContext(user_id="dry-run-employee", tenant_id=DRY_RUN_TENANT, role=Role.EMPLOYEE)
    failures: List[str] = []
    start = start or date.today() + timedelta(days=7)

    for leave_type, definition in registry.definitions.items():
        draft = LeaveRequestDraft(
            tenant_id=DRY_RUN_TENANT,
            employee_id=employee.user_id,
            leave_type=leave_type,
            start_date=start,
            end_date=start + timedelta(days=4),
            medical_documentation_required=True,
            mission=MissionDetails(location="Head office", purpose="Dry run")
            if leave_type == LeaveType.MISSION else None
        )
        result = engine.submit(draft, employee)
        if not result.ok:
            failures.append(f"{leave_type.value}: submit failed ({result.error.message})")
            continue

        request = result.request
        while not request.is_terminal:
            step = definition.get_step(request.workflow.current_step)
            reviewer = ActorContext(
                user_id=f"dry-run-{step.name}",
                tenant_id=DRY_RUN_TENANT,
                role=sorted(step.required_roles, key=lambda r: r.value)[0]
            )
            result = engine.decide(request.request_id, reviewer, step.name, DecisionOutcome.APPROVE)
            if not result.ok:
                failures.append(f"{leave_type.value}: {step.name} failed ({result.error.message})")
                break
            request = result.request

        status = request.status.value
        print(f"   {'✅' if status == 'approved' else '❌'} {leave_type.value}: {status}")
    return failures


def main() -> int:
    parser = argparse.ArgumentParser(description="Validate leave workflow definitions")
    parser.add_argument("--dry-run", action="store_true", help="Walk every chain with an in-memory store")
    parser.add_argument("--start-date", help="ISO date the dry-run leaves start on (default: in a week)")
    args = parser.parse_args()

    setup_logging()
    print(f"Validation run at {format_iso(utc_now())}")

    start = None
    if args.start_date:
        try:
            start = parse_iso(args.start_date).date()
        except ValueError as e:
            print(f"❌ Invalid --start-date {args.start_date!r}: {e}")
            return 2

    try:
        registry = build_default_registry()
    except WorkflowDefinitionError as e:
        print(f"❌ Invalid workflow definition: {e.message} {e.details}")
        return 1

    describe(registry)

    if args.dry_run:
        print("\n" + "=" * 60)
        print("DRY RUN")
        print("=" * 60)
        failures = dry_run(registry, start)
        for failure in failures:
            print(f"❌ {failure}")
        if failures:
            return 1

    print("\n✅ All workflow definitions are valid")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
