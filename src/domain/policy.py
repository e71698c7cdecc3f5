from dataclasses import dataclass

from src.domain.entities import Authenticated, Operation, Principal, Resource
from src.rules.models import PolicyRules


@dataclass(frozen=True)
class ReadScope:
    """
    Row filter the store applies to every read.

    A row is visible when its visibility is in `public_visibility`, or when
    `owner_id` is set and matches the row owner.
    """

    owner_id: str | None
    public_visibility: tuple[str, ...]


class PolicyEngine:
    def __init__(self, rules: PolicyRules):
        self.rules = rules

    def is_public(self, resource: Resource) -> bool:
        return resource.visibility in self.rules.public_read_visibility

    def can_access(
        self,
        principal: Principal,
        target: Resource | type[Resource],
        operation: Operation,
    ) -> bool:
        """
        Decide whether the principal may perform the operation on the target.

        Order of evaluation:
        1. Public read (any principal, including anonymous)
        2. Authentication (every other case needs an identity)
        3. Ownership (reads of private rows, updates, deletes)

        `target` is the Resource class for create, where no row exists yet.
        """
        if isinstance(target, Resource) and operation == "read" and self.is_public(target):
            return True

        if not isinstance(principal, Authenticated):
            return False

        if operation == "create":
            return True

        if not isinstance(target, Resource):
            # read/update/delete are always evaluated against a concrete row
            return False

        return target.owner_id == principal.id

    def read_scope(self, principal: Principal) -> ReadScope:
        owner_id = principal.id if isinstance(principal, Authenticated) else None
        return ReadScope(
            owner_id=owner_id,
            public_visibility=tuple(self.rules.public_read_visibility),
        )

    def owner_for_create(self, principal: Principal) -> str | None:
        """Owner id assigned server-side on create. None for anonymous callers."""
        if isinstance(principal, Authenticated):
            return principal.id
        return None
