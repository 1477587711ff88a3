# Overview: Service-layer operations for branches.

from ..extensions import db
from ..models import Branch
from ..validation import ModelValidationPolicy, parse_status, validate_payload
from .code_service import next_code
from .common import apply_patch, change_status, ensure_deletable, ensure_unique, get_or_404


BRANCH_STATUSES = ("active", "inactive", "pending")

CREATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location", "address", "phone", "status"},
    required_on_create={"name", "location", "address", "phone"},
    digit_fields={"phone"},
)
UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "location", "address", "phone"},
    digit_fields={"phone"},
)


def list_branches(*, status: str | None = None) -> list[Branch]:
    query = db.session.query(Branch)
    if status:
        query = query.filter(Branch.status == parse_status(status, BRANCH_STATUSES))
    return query.order_by(Branch.name).all()


def get_branch(branch_id: int) -> Branch:
    return get_or_404(Branch, branch_id, "Branch")


def create_branch(payload: dict) -> Branch:
    patch = validate_payload(model=Branch, payload=payload, policy=CREATE_POLICY, partial=False)
    if "status" in patch:
        patch["status"] = parse_status(patch["status"], BRANCH_STATUSES)
    ensure_unique(Branch, Branch.name, patch["name"], message="Branch name already exists")

    branch = Branch(code=next_code(Branch), **patch)
    db.session.add(branch)
    db.session.commit()
    return branch


def update_branch(branch_id: int, payload: dict) -> Branch:
    branch = get_branch(branch_id)
    patch = validate_payload(model=Branch, payload=payload, policy=UPDATE_POLICY, partial=True)
    if "name" in patch:
        ensure_unique(
            Branch, Branch.name, patch["name"],
            message="Branch name already exists", exclude_id=branch.id,
        )

    apply_patch(branch, patch)
    db.session.commit()
    return branch


def set_branch_status(branch_id: int, status) -> Branch:
    branch = get_branch(branch_id)
    change_status(branch, status, BRANCH_STATUSES)
    db.session.commit()
    return branch


def delete_branch(branch_id: int) -> None:
    branch = get_branch(branch_id)
    ensure_deletable(branch, "branch")
    db.session.delete(branch)
    db.session.commit()
