"""
Unit tests for root operation classification.
"""

import pytest

from rail_authz import OperationKind, UnknownQueryOperation, classify_operation

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "operation_name, expected",
    [
        ("createPost", OperationKind.CREATE),
        ("updatePost", OperationKind.UPDATE),
        ("upsertPost", OperationKind.UPSERT),
        ("deletePost", OperationKind.DELETE),
        ("updateManyPosts", OperationKind.UPDATE_MANY),
        ("deleteManyPosts", OperationKind.DELETE_MANY),
        ("create_post", OperationKind.CREATE),
        ("delete", OperationKind.DELETE),
    ],
)
def test_mutations_are_classified_by_prefix(operation_name, expected):
    assert classify_operation("Mutation", operation_name) is expected
    assert expected.is_write


@pytest.mark.parametrize("root_kind", ["Query", "query"])
def test_queries_are_reads_whatever_their_name(root_kind):
    assert classify_operation(root_kind, "deletedPosts") is OperationKind.READ
    assert not OperationKind.READ.is_write


@pytest.mark.parametrize("operation_name", ["publish", "creator", "updatedAt", ""])
def test_unknown_mutations_are_rejected(operation_name):
    with pytest.raises(UnknownQueryOperation) as excinfo:
        classify_operation("Mutation", operation_name)
    assert str(excinfo.value) == f"Unknown query type for query named {operation_name}"
    assert excinfo.value.code == "UNKNOWN_QUERY_OPERATION"


def test_unknown_mutations_are_custom_when_not_strict():
    assert classify_operation("Mutation", "publish", strict=False) is OperationKind.CUSTOM
