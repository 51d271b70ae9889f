"""
Tests for the invalidation graph and resource keys.
"""

import pytest

from ledger_cache.cache import InvalidationGraph, keys
from ledger_cache.entities import KeyPattern, KeyTemplate, MutationKind, ResourceKey
from ledger_cache.errors import UnknownMutationError

ALL_KINDS = list(MutationKind)


@pytest.fixture
def graph():
    return InvalidationGraph()


def covered(descriptor, key: ResourceKey) -> bool:
    """Whether any target of a descriptor invalidates ``key``."""
    for target in descriptor.target_keys:
        if target == key or (isinstance(target, KeyPattern) and target.matches(key)):
            return True
    return False


class TestKeys:
    def test_key_string_form(self):
        assert str(keys.teams()) == "teams"
        assert str(keys.team_expenses("t1")) == "team-expenses(t1)"
        assert str(keys.ALL_BALANCES) == "my-balance(*)"

    def test_keys_with_same_parts_are_equal(self):
        assert keys.my_balance("t1") == ResourceKey("my-balance", ("t1",))
        assert keys.my_balance("t1") != keys.team_balances("t1")
        assert len({keys.team("t1"), keys.team("t1"), keys.team("t2")}) == 2

    def test_pattern_matching(self):
        assert keys.ALL_EXPENSES.matches(keys.team_expenses("t9"))
        assert not keys.ALL_EXPENSES.matches(keys.team_balances("t9"))
        assert KeyPattern("team", ("t1",)).matches(keys.team("t1"))
        assert not KeyPattern("team", ("t1",)).matches(keys.team("t2"))

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("teams", ResourceKey("teams")),
            ("team-expenses(t1)", ResourceKey("team-expenses", ("t1",))),
            ("team-expenses(*)", KeyPattern("team-expenses")),
        ],
    )
    def test_parse(self, text, expected):
        assert keys.parse(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "team-expenses(t1"])
    def test_parse_rejects_malformed_keys(self, text):
        with pytest.raises(ValueError):
            keys.parse(text)

    def test_template_requires_its_parameters(self):
        template = KeyTemplate("team-expenses", ("team_id",))

        assert template.resolve({"team_id": "t1"}) == keys.team_expenses("t1")
        with pytest.raises(ValueError):
            template.resolve({})


class TestGraph:
    def test_every_mutation_kind_has_an_entry(self, graph):
        assert set(graph.kinds()) == set(ALL_KINDS)

    def test_create_expense_targets(self, graph):
        descriptor = graph.describe(MutationKind.CREATE_EXPENSE, {"team_id": "t1"})

        assert descriptor.kind is MutationKind.CREATE_EXPENSE
        assert descriptor.target_keys == (
            keys.team_expenses("t1"),
            keys.team_balances("t1"),
            keys.team_approvals("t1"),
            keys.ALL_EXPENSES,
            keys.ALL_BALANCES,
        )

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (MutationKind.UPLOAD_RECEIPT, ("team-expenses(t1)",)),
            (
                MutationKind.DELETE_EXPENSE,
                (
                    "team-expenses(t1)",
                    "team-balances(t1)",
                    "team-approvals(t1)",
                    "team-expenses(*)",
                    "my-balance(*)",
                ),
            ),
            (MutationKind.ADD_MEMBER, ("team-members(t1)", "team-balances(t1)", "team(t1)", "teams")),
            (
                MutationKind.REMOVE_MEMBER,
                ("team-members(t1)", "team-balances(t1)", "team(t1)", "teams", "my-balance(*)"),
            ),
            (MutationKind.UPDATE_APPROVAL, ("team-approvals(t1)", "team-expenses(t1)")),
            (MutationKind.RECORD_SETTLEMENT, ("team-balances(t1)", "my-balance(*)")),
            (MutationKind.UPDATE_TEAM, ("teams", "team(t1)")),
        ],
    )
    def test_table_rows(self, graph, kind, expected):
        descriptor = graph.describe(kind, {"team_id": "t1"})

        assert tuple(str(target) for target in descriptor.target_keys) == expected

    def test_create_team_needs_no_parameters(self, graph):
        descriptor = graph.describe(MutationKind.CREATE_TEAM, {})

        assert descriptor.target_keys == (keys.teams(),)

    def test_delete_team_covers_every_team_scoped_key(self, graph):
        descriptor = graph.describe(MutationKind.DELETE_TEAM, {"team_id": "t1"})

        for resource in keys.TEAM_SCOPED:
            assert covered(descriptor, ResourceKey(resource, ("t1",)))
        assert covered(descriptor, keys.teams())
        assert not covered(descriptor, keys.team_expenses("t2"))

    @pytest.mark.parametrize(
        "kind",
        [MutationKind.CREATE_EXPENSE, MutationKind.UPDATE_EXPENSE, MutationKind.DELETE_EXPENSE],
    )
    def test_expense_changes_reach_the_cross_team_views(self, graph, kind):
        descriptor = graph.describe(kind, {"team_id": "t1"})

        # all-balances reads my-balance(T), all-expenses reads team-expenses(T)
        assert covered(descriptor, keys.my_balance("t1"))
        assert covered(descriptor, keys.my_balance("t2"))
        assert covered(descriptor, keys.team_expenses("t2"))

    def test_balance_changing_mutations_reach_all_balances(self, graph):
        for kind in (MutationKind.RECORD_SETTLEMENT, MutationKind.REMOVE_MEMBER):
            descriptor = graph.describe(kind, {"team_id": "t1"})
            assert covered(descriptor, keys.my_balance("t1"))
            assert covered(descriptor, keys.team_balances("t1"))

    def test_describe_deduplicates_targets(self):
        template = KeyTemplate("team-expenses", ("team_id",))
        graph = InvalidationGraph({MutationKind.UPLOAD_RECEIPT: (template, template)})

        descriptor = graph.describe(MutationKind.UPLOAD_RECEIPT, {"team_id": "t1"})

        assert descriptor.target_keys == (keys.team_expenses("t1"),)

    def test_kind_accepts_its_string_value(self, graph):
        descriptor = graph.describe("record_settlement", {"team_id": "t1"})

        assert descriptor.kind is MutationKind.RECORD_SETTLEMENT

    def test_unknown_kind_raises(self, graph):
        with pytest.raises(UnknownMutationError):
            graph.describe("rename_user", {})

    def test_kind_missing_from_custom_table_raises(self):
        graph = InvalidationGraph({})

        with pytest.raises(UnknownMutationError):
            graph.targets(MutationKind.CREATE_EXPENSE)

    def test_missing_parameter_raises(self, graph):
        with pytest.raises(ValueError):
            graph.describe(MutationKind.CREATE_EXPENSE, {})

    @pytest.mark.parametrize("kind", [MutationKind.ADD_MEMBER, MutationKind.REMOVE_MEMBER])
    def test_membership_changes_reach_team_listings(self, graph, kind):
        descriptor = graph.describe(kind, {"team_id": "t1"})

        assert covered(descriptor, keys.teams())
        assert covered(descriptor, keys.team("t1"))
        assert covered(descriptor, keys.team_balances("t1"))
        assert not covered(descriptor, keys.team("t2"))
