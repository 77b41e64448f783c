from __future__ import annotations

import pytest

from capability_runtime.interpreter import ExecutionContext


@pytest.fixture
def ctx() -> ExecutionContext:
    return ExecutionContext(
        agent_id="agent-a",
        capability_name="cap",
        variables={"user": {"name": "Ada", "tags": ["x", "y"]}, "count": 3, "flag": True},
        config={"aggressive": "true"},
        deps={"github": {"token": "t0k"}},
        call_context={"tabId": 7},
    )


def test_whole_string_reference_keeps_raw_value(ctx: ExecutionContext):
    assert ctx.resolve_value("{{count}}") == 3
    assert ctx.resolve_value("{{user}}") == {"name": "Ada", "tags": ["x", "y"]}
    assert ctx.resolve_value("{{ user.name }}") == "Ada"


def test_embedded_references_are_stringified(ctx: ExecutionContext):
    assert ctx.resolve_value("Hello {{user.name}}, {{count}} new") == "Hello Ada, 3 new"
    assert ctx.resolve_value("on={{flag}}") == "on=true"
    assert ctx.resolve_value("tags={{user.tags}}") == 'tags=["x", "y"]'


def test_indexed_path(ctx: ExecutionContext):
    assert ctx.resolve_value("{{user.tags.1}}") == "y"
    assert ctx.lookup("user.tags.5") is None


def test_unresolved_references_are_left_untouched(ctx: ExecutionContext):
    assert ctx.resolve_value("{{missing}}") == "{{missing}}"
    assert ctx.resolve_value("a {{missing.deep}} b") == "a {{missing.deep}} b"


def test_config_and_dependency_references(ctx: ExecutionContext):
    assert ctx.resolve_value("{{config.aggressive}}") == "true"
    assert ctx.resolve_value("Bearer {{deps.github.token}}") == "Bearer t0k"
    assert ctx.resolve_value("{{deps.gitlab.token}}") == "{{deps.gitlab.token}}"


def test_resolve_recurses_into_containers(ctx: ExecutionContext):
    value = {"who": "{{user.name}}", "items": ["{{count}}", "plain"]}
    assert ctx.resolve_value(value) == {"who": "Ada", "items": [3, "plain"]}


def test_lookup_accepts_name_path_or_reference(ctx: ExecutionContext):
    assert ctx.lookup("count") == 3
    assert ctx.lookup("user.name") == "Ada"
    assert ctx.lookup("{{user.name}}") == "Ada"
    assert ctx.lookup("nothing") is None


def test_child_reads_through_and_shadows_locally(ctx: ExecutionContext):
    child = ctx.child(item="a", count=10)

    assert child.get_variable("item") == "a"
    assert child.get_variable("count") == 10
    assert ctx.get_variable("count") == 3
    assert child.config == ctx.config
    assert child.call_context == {"tabId": 7}
    assert not ctx.has_variable("item")


def test_set_variable_updates_owning_scope(ctx: ExecutionContext):
    child = ctx.child(item="a")

    child.set_variable("flag", False)
    child.set_variable("local", 1)

    assert ctx.get_variable("flag") is False
    assert not ctx.has_variable("local")
    assert child.variables["local"] == 1
    assert child.variables["flag"] is False
