"""
Account tree -- pure hierarchy helpers for the chart of accounts.

Responsibility:
    Detect parent cycles before a reparent is persisted, and group a flat
    account list into a forest for presentation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Parent-chain walks are bounded by the number of known accounts, so a
      chain already corrupted by a cycle terminates instead of looping.
    - Tree building is iterative; depth never touches the recursion limit.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Mapping, Sequence
from uuid import UUID

from ledger_kernel.domain.dtos import AccountNode, AccountView


def creates_cycle(
    account_id: UUID,
    proposed_parent_id: UUID,
    parent_of: Mapping[UUID, UUID | None],
) -> bool:
    """
    Would setting ``account_id.parent = proposed_parent_id`` close a loop?

    Walks from the proposed parent toward the root.  Reaching
    ``account_id`` means a cycle.  Exhausting the iteration bound means
    the stored chain is already cyclic, which is reported as a cycle too.

    Args:
        account_id: The account being reparented.
        proposed_parent_id: The new parent.
        parent_of: Current parent id of every account in the tenant.
    """
    if proposed_parent_id == account_id:
        return True

    bound = len(parent_of) + 1
    current: UUID | None = proposed_parent_id
    for _ in range(bound):
        if current is None:
            return False
        if current == account_id:
            return True
        current = parent_of.get(current)
    return True


def build_account_tree(
    accounts: Sequence[AccountView],
) -> tuple[AccountNode, ...]:
    """
    Group a flat account list into a forest.

    Accounts whose parent is missing from the list (deleted, filtered out,
    or belonging to another tenant) become roots.  Siblings keep the input
    order; callers pass accounts sorted by code.  Members of a corrupted
    parent cycle are still emitted, with the first one in input order
    promoted to a root.
    """
    by_id = {a.account_id: a for a in accounts}
    children: dict[UUID, list[AccountView]] = defaultdict(list)
    roots: list[AccountView] = []

    for account in accounts:
        parent_id = account.parent_id
        if parent_id is None or parent_id not in by_id or parent_id == account.account_id:
            roots.append(account)
        else:
            children[parent_id].append(account)

    built: dict[UUID, AccountNode] = {}
    visited: set[UUID] = set()

    def _build(root: AccountView) -> AccountNode:
        stack: list[tuple[AccountView, bool]] = [(root, False)]
        while stack:
            view, expanded = stack.pop()
            if expanded:
                kids = tuple(
                    built[c.account_id]
                    for c in children[view.account_id]
                    if c.account_id in built
                )
                built[view.account_id] = _to_node(view, kids)
                continue
            visited.add(view.account_id)
            stack.append((view, True))
            for child in reversed(children[view.account_id]):
                if child.account_id not in visited:
                    stack.append((child, False))
        return built[root.account_id]

    forest = [_build(root) for root in roots]

    # Anything left is trapped in a parent cycle
    for account in accounts:
        if account.account_id not in visited:
            forest.append(_build(account))

    return tuple(forest)


def _to_node(view: AccountView, children: tuple[AccountNode, ...]) -> AccountNode:
    return AccountNode(
        account_id=view.account_id,
        code=view.code,
        name=view.name,
        account_type=view.account_type,
        sub_type=view.sub_type,
        parent_id=view.parent_id,
        is_active=view.is_active,
        is_system_account=view.is_system_account,
        balance=view.balance,
        children=children,
    )
