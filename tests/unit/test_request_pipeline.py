"""
Unit tests for the three-phase request pipeline.
"""

import pytest
import sentry_sdk

from rail_authz import (
    Authorized,
    Authorizer,
    AuthorizationDenied,
    GuardedRun,
    OperationKind,
    PolicyEvaluationError,
    RequestPipeline,
    UnknownQueryOperation,
)

pytestmark = pytest.mark.unit

POST = {"id": "p1", "title": "Hello", "author": {"email": "a@b.com"}}

BLOG_PERMISSIONS = {
    "Post": {
        "read": {"id": True, "title": True, "author": "User"},
        "write": {"title": True, "body": True},
    },
    "User": {"read": {"email": True}},
    "PostCreateInput": {"write": {"title": True, "body": True}},
    "PostWhereUniqueInput": {"write": {"id": True}},
}


def _api(data_layer, type_defs, permission_map=None, principal=None, **options):
    authorized = Authorized(data_layer, type_defs, permission_map or BLOG_PERMISSIONS, options=options)
    return authorized.for_principal(principal)


@pytest.mark.asyncio
async def test_allowed_query_returns_response_unchanged(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"post": POST})
    api = _api(data_layer, type_defs, principal=principal)

    result = await api.query.post({"where": {"id": "p1"}}, "{ id title author { email } }")

    assert result is POST
    assert data_layer.calls == [("post", {"where": {"id": "p1"}}, "{ id title author { email } }")]


@pytest.mark.asyncio
async def test_denied_read_withholds_response(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"post": {"title": "Hello", "body": "secret"}})
    api = _api(data_layer, type_defs, principal=principal)

    with pytest.raises(AuthorizationDenied) as excinfo:
        await api.query.post({"where": {"id": "p1"}}, None)

    error = excinfo.value
    assert error.phase == "output"
    assert error.result == {"title": True, "body": False}
    assert "Detailed access result" in str(error)
    assert data_layer.call_count("post") == 1


@pytest.mark.asyncio
async def test_denied_input_never_runs_the_mutation(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"createPost": {"id": "p1", "title": "x"}})
    permissions = dict(BLOG_PERMISSIONS, PostCreateInput={"write": {"title": False}})
    api = _api(data_layer, type_defs, permissions, principal=principal)

    with pytest.raises(AuthorizationDenied) as excinfo:
        await api.mutation.createPost({"data": {"title": "x"}}, "{ id }")

    assert excinfo.value.phase == "input"
    assert excinfo.value.result == {
        "data": {"input_type": "PostCreateInput", "result": {"title": False}}
    }
    assert data_layer.call_count("createPost") == 0


@pytest.mark.asyncio
async def test_allowed_mutation_runs_once(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"createPost": {"id": "p1", "title": "x"}})
    api = _api(data_layer, type_defs, principal=principal)

    result = await api.mutation.createPost({"data": {"title": "x", "body": "y"}}, "{ id title }")

    assert result == {"id": "p1", "title": "x"}
    assert data_layer.call_count("createPost") == 1


@pytest.mark.asyncio
async def test_predicate_forcing_run_shares_the_execution(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"post": POST})

    async def author_is_known(root_args, run, context):
        post = await run()
        return post["author"] is not None

    permissions = dict(BLOG_PERMISSIONS, Post={"read": {"id": True, "title": author_is_known, "author": "User"}})
    api = _api(data_layer, type_defs, permissions, principal=principal)

    assert await api.query.post({"where": {"id": "p1"}}, None) is POST
    assert data_layer.call_count("post") == 1


@pytest.mark.asyncio
async def test_broken_policy_propagates_as_evaluation_error(make_data_layer, type_defs, principal, monkeypatch):
    reported = []
    monkeypatch.setattr(sentry_sdk, "capture_exception", lambda error, **kwargs: reported.append((error, kwargs)))

    def broken(root_args, run, context):
        raise RuntimeError("boom")

    data_layer = make_data_layer({"post": POST})
    permissions = dict(BLOG_PERMISSIONS, Post={"read": {"id": True, "title": broken}})

    quiet = _api(data_layer, type_defs, permissions, principal=principal)
    with pytest.raises(PolicyEvaluationError):
        await quiet.query.post({"where": {"id": "p1"}}, None)
    assert reported == []

    loud = _api(data_layer, type_defs, permissions, principal=principal, report_policy_errors=True)
    with pytest.raises(PolicyEvaluationError) as excinfo:
        await loud.query.post({"where": {"id": "p1"}}, None)

    assert len(reported) == 1
    error, kwargs = reported[0]
    assert error is excinfo.value
    assert kwargs["tags"]["authz.operation"] == "Query.post"
    assert kwargs["tags"]["authz.type"] == "Post"


@pytest.mark.asyncio
async def test_unclassifiable_mutation_is_rejected(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"publish": POST})
    api = _api(data_layer, type_defs, principal=principal)

    with pytest.raises(UnknownQueryOperation, match="Unknown query type for query named publish"):
        await api.mutation.publish({"id": "p1"}, None)
    assert data_layer.call_count("publish") == 0


@pytest.mark.asyncio
async def test_custom_mutations_run_when_classification_is_relaxed(make_data_layer, type_defs, principal):
    seen = []

    async def kind_check(root_args, run, context):
        seen.append(context)
        return True

    data_layer = make_data_layer({"publish": {"id": "p1", "title": "Hello"}})
    permissions = dict(BLOG_PERMISSIONS, ID={"write": kind_check})
    api = _api(
        data_layer,
        type_defs,
        permissions,
        principal=principal,
        require_operation_classification=False,
    )

    assert await api.mutation.publish({"id": "p1"}, None) == {"id": "p1", "title": "Hello"}
    assert seen[0].principal is principal
    assert data_layer.call_count("publish") == 1


@pytest.mark.asyncio
async def test_pipeline_passes_operation_kind_to_both_phases(make_data_layer, type_graph, principal):
    kinds = []

    data_layer = make_data_layer({"deletePost": {"id": "p1"}})
    authorizer = Authorizer(
        {
            "PostWhereUniqueInput": {"write": {"id": True}},
            "Post": {"read": {"id": True}},
        },
        known_types=type_graph.get_resource_type_names(),
    )
    pipeline = RequestPipeline(
        authorizer,
        type_graph,
        data_layer.mutation["deletePost"],
        "Mutation",
        "deletePost",
        principal=principal,
        data_layer=data_layer,
    )

    original = authorizer.authorize

    async def spy(type_name, auth_type, data, context, root_data, run=None):
        kinds.append(root_data.operation_kind)
        return await original(type_name, auth_type, data, context, root_data, run=run)

    authorizer.authorize = spy

    assert await pipeline({"where": {"id": "p1"}}) == {"id": "p1"}
    assert kinds == [OperationKind.DELETE, OperationKind.DELETE]
    assert pipeline.principal is principal


def test_sync_entry_point(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"post": POST})
    api = _api(data_layer, type_defs, principal=principal)

    assert api.query.post.sync({"where": {"id": "p1"}}, None) is POST
    assert data_layer.call_count("post") == 1


@pytest.mark.asyncio
async def test_denial_message_can_omit_the_result(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"post": {"title": "Hello", "body": "secret"}})
    api = _api(data_layer, type_defs, principal=principal, include_result_in_message=False)

    with pytest.raises(AuthorizationDenied) as excinfo:
        await api.query.post({"where": {"id": "p1"}}, None)

    assert str(excinfo.value) == "Authorization check failed for 'post'"
    assert excinfo.value.to_graphql_error().extensions["result"] == {"title": True, "body": False}


@pytest.mark.asyncio
async def test_write_policies_cannot_force_the_mutation(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"createPost": {"id": "p1", "title": "x"}})

    async def peeks_at_result(root_args, run, context):
        await run()
        return False

    permissions = dict(BLOG_PERMISSIONS, PostCreateInput={"write": {"title": peeks_at_result}})
    api = _api(data_layer, type_defs, permissions, principal=principal)

    with pytest.raises(PolicyEvaluationError, match="cannot read the operation result"):
        await api.mutation.createPost({"data": {"title": "x"}}, "{ id }")
    assert data_layer.call_count("createPost") == 0


@pytest.mark.asyncio
async def test_delegated_write_policies_get_the_guarded_run(make_data_layer, type_defs, principal):
    data_layer = make_data_layer({"createPost": {"id": "p1", "title": "x"}})
    runs = []

    def record_run(root_args, run, context):
        runs.append(run)
        return True

    permissions = dict(
        BLOG_PERMISSIONS,
        PostCreateInput={"write": {"title": True, "author": "UserCreateOneInput"}},
        UserCreateOneInput={"write": {"connect": record_run}},
    )
    api = _api(data_layer, type_defs, permissions, principal=principal)

    result = await api.mutation.createPost({"data": {"title": "x", "author": {"connect": {"id": "u1"}}}}, None)

    assert result == {"id": "p1", "title": "x"}
    assert isinstance(runs[0], GuardedRun)
    assert data_layer.call_count("createPost") == 1
