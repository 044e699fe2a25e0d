"""
Unit tests for derived (default) type permissions.
"""

import pytest

from rail_authz import ALLOW, DENY, AuthType, DerivedPermissionGenerator, PermissionMapping, resolve
from rail_authz.policy import apply_derived_type_permissions, merge_permission_maps

pytestmark = pytest.mark.unit


def test_unauthored_composite_types_default_to_deny(type_graph):
    derived = DerivedPermissionGenerator(type_graph).derive({})

    assert derived["PostConnection"] == {"read": False, "write": False}
    assert derived["AggregatePost"] == {"read": False, "write": False}
    assert derived["PostCreateInput"] == {"read": False, "write": False}


def test_leaf_types_default_to_allow(type_graph):
    derived = DerivedPermissionGenerator(type_graph).derive({})

    assert derived["PostStatus"] == {"read": True, "write": True}
    assert derived["ID"] == {"read": True, "write": True}


def test_leaf_allowance_can_be_disabled(type_graph):
    derived = DerivedPermissionGenerator(type_graph, allow_leaf_types=False).derive({})
    assert derived["PostStatus"] == {"read": False, "write": False}


def test_only_missing_buckets_are_derived(type_graph):
    derived = DerivedPermissionGenerator(type_graph).derive(
        {"Post": {"read": {"title": True}}, "User": {"read": True, "write": False}}
    )

    assert derived["Post"] == {"write": False}
    assert "User" not in derived


def test_authored_entries_take_precedence(type_graph):
    authored = {"PostStatus": {"read": False}, "Post": {"read": {"title": True}}}
    complete = PermissionMapping.compile(apply_derived_type_permissions(type_graph, authored))

    assert resolve(complete, "PostStatus", AuthType.READ) is DENY
    assert resolve(complete, "PostStatus", AuthType.WRITE) is ALLOW
    assert resolve(complete, "Post", AuthType.READ, "title") is ALLOW
    assert resolve(complete, "Post", AuthType.READ, "body") is DENY
    assert resolve(complete, "AggregatePost", AuthType.READ) is DENY


def test_merge_is_deep_and_does_not_mutate_inputs():
    base = {"Post": {"read": {"title": True}, "write": False}}
    override = {"Post": {"read": {"body": True}}}

    merged = merge_permission_maps(base, override)

    assert merged == {"Post": {"read": {"title": True, "body": True}, "write": False}}
    assert base == {"Post": {"read": {"title": True}, "write": False}}
