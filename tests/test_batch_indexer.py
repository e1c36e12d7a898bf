# tests/test_batch_indexer.py

import math

import pytest

from searchsync.domain.errors import MixedIndexBatchError
from searchsync.infrastructure.batch_indexer import BatchIndexer, resolve_batch_index
from tests.fakes import Post, Product


@pytest.fixture
def indexer(index_manager):
    return BatchIndexer(index_manager)


@pytest.mark.parametrize("count", [1, 2, 3, 4, 5])
def test_index_many_issues_ceil_n_over_b_requests(indexer, index_manager, count):
    products = [Product(id=i) for i in range(count)]

    requests = indexer.index_many(products)

    batch_size = index_manager.batch_size
    calls = index_manager.add_documents.call_args_list
    assert requests == len(calls) == math.ceil(count / batch_size)
    assert all(len(call.args[1]) <= batch_size for call in calls)
    assert len(calls[-1].args[1]) == count - batch_size * (len(calls) - 1)


def test_index_many_preserves_order_and_builds_documents(indexer, index_manager):
    posts = [Post(id=i, uuid=f"u{i}") for i in range(3)]

    indexer.index_many(posts)

    sent = [doc["id"] for call in index_manager.add_documents.call_args_list for doc in call.args[1]]
    assert sent == ["u0", "u1", "u2"]
    assert {call.args[0] for call in index_manager.add_documents.call_args_list} == {"posts"}


def test_remove_many_deletes_by_key(indexer, index_manager):
    products = [Product(id=i) for i in range(3)]

    assert indexer.remove_many(products) == 2

    keys = [call.args[1] for call in index_manager.delete_documents.call_args_list]
    assert keys == [[0, 1], [2]]


def test_empty_input_issues_no_requests(indexer, index_manager):
    assert indexer.index_many([]) == 0
    assert indexer.remove_many(iter([])) == 0
    index_manager.add_documents.assert_not_called()
    index_manager.delete_documents.assert_not_called()


def test_mixed_index_batch_is_rejected_before_any_request(indexer, index_manager):
    with pytest.raises(MixedIndexBatchError, match="products"):
        indexer.index_many([Post(id=1, uuid="u"), Product(id=2)])

    index_manager.add_documents.assert_not_called()


def test_resolve_batch_index():
    assert resolve_batch_index([]) is None
    assert resolve_batch_index([Product(id=1), Product(id=2)]) == "products"
