"""
Shared fixtures for the authorization engine unit tests.
"""

from types import SimpleNamespace

import pytest

from rail_authz import AuthContext, RootData, TypeGraph

BLOG_TYPE_DEFS = """
type User {
  id: ID!
  email: String
  name: String
  posts: [Post!]!
}

enum PostStatus {
  DRAFT
  PUBLISHED
}

type Post {
  id: ID! @unique
  title: String!
  body: String
  status: PostStatus
  author: User
}

type PostEdge {
  node: Post
}

type AggregatePost {
  count: Int!
}

type PostConnection {
  edges: [PostEdge]
  aggregate: AggregatePost
}

input UserWhereUniqueInput {
  id: ID
  email: String
}

input UserCreateOneInput {
  connect: UserWhereUniqueInput
}

input PostWhereUniqueInput {
  id: ID
}

input PostCreateInput {
  title: String!
  body: String
  author: UserCreateOneInput
}

type Query {
  post(where: PostWhereUniqueInput!): Post
  posts: [Post!]!
  postsConnection: PostConnection
  user(where: UserWhereUniqueInput!): User
}

type Mutation {
  createPost(data: PostCreateInput!): Post!
  deletePost(where: PostWhereUniqueInput!): Post
  publish(id: ID!): Post
}
"""


class RecordingDataLayer:
    """Data layer stub recording every call made to its operations."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []
        self.query = {
            name: self._operation(name) for name in ("post", "posts", "postsConnection", "user")
        }
        self.mutation = {
            name: self._operation(name) for name in ("createPost", "deletePost", "publish")
        }

    def _operation(self, name):
        async def operation(args, info):
            self.calls.append((name, args, info))
            response = self.responses.get(name)
            if isinstance(response, Exception):
                raise response
            return response

        operation.__name__ = name
        return operation

    def call_count(self, name):
        return sum(1 for call in self.calls if call[0] == name)


@pytest.fixture
def type_defs():
    return BLOG_TYPE_DEFS


@pytest.fixture
def type_graph():
    return TypeGraph(BLOG_TYPE_DEFS)


@pytest.fixture
def principal():
    return SimpleNamespace(id="user-1", is_authenticated=True)


@pytest.fixture
def auth_context(principal):
    return AuthContext(principal=principal, transport_context={}, data_layer=None)


@pytest.fixture
def root_data():
    return RootData(root_field_name="post", root_type_name="Query", inputs={})


@pytest.fixture
def data_layer():
    return RecordingDataLayer()


@pytest.fixture
def make_data_layer():
    return RecordingDataLayer
