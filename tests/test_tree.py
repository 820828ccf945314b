import pytest

from task_tree_printer.errors import TaskNotFoundError
from task_tree_printer.tree import build_task_tree, get_descendants


def _assert_sorted(nodes):
    orders = [n.task.order_index for n in nodes]
    assert orders == sorted(orders)
    for node in nodes:
        _assert_sorted(node.children)


def test_tree_of_sample_tasks(sample_store):
    tree = build_task_tree(sample_store)

    assert [n.task.name for n in tree] == ["Clean the house", "Work tasks", "Exercise routine"]
    house = tree[0]
    assert [n.task.name for n in house.children] == ["Clean bedroom", "Clean kitchen", "Clean bathroom"]
    assert [n.task.name for n in house.children[0].children] == ["Make bed", "Vacuum floor", "Organize closet"]
    assert tree[1].children == []
    _assert_sorted(tree)


def test_tree_follows_reordering(sample_store):
    exercise = sample_store.get_children(None)[2]
    cool_down = sample_store.get_children(exercise.id)[-1]
    sample_store.update_task(cool_down.id, order_index=-5)

    tree = build_task_tree(sample_store)
    assert tree[2].children[0].task.name == "Cool down"
    _assert_sorted(tree)


def test_subtree_from_parent(sample_store):
    house = sample_store.get_children(None)[0]
    subtree = build_task_tree(sample_store, house.id)
    assert [n.task.name for n in subtree] == ["Clean bedroom", "Clean kitchen", "Clean bathroom"]


def test_empty_store_gives_empty_tree(store):
    assert build_task_tree(store) == []


def test_node_to_dict_nests_children(store):
    root = store.create_task("Root")
    store.create_task("Child", root.id)

    data = build_task_tree(store)[0].to_dict()
    assert data["name"] == "Root"
    assert data["parent_id"] is None
    assert data["children"][0]["name"] == "Child"
    assert data["children"][0]["children"] == []


def test_descendants_order(sample_store):
    house = sample_store.get_children(None)[0]
    names = [t.name for t in get_descendants(sample_store, house.id)]
    assert names == [
        "Clean bedroom",
        "Clean kitchen",
        "Clean bathroom",
        "Make bed",
        "Vacuum floor",
        "Organize closet",
        "Wash dishes",
        "Wipe counters",
        "Mop floor",
    ]


def test_descendants_stay_inside_subtree(sample_store):
    for task in sample_store.all_tasks():
        descendants = get_descendants(sample_store, task.id)
        assert task.id not in [d.id for d in descendants]
        for d in descendants:
            ancestor = d.parent_id
            while ancestor is not None and ancestor != task.id:
                ancestor = sample_store.get_task(ancestor).parent_id
            assert ancestor == task.id


def test_leaf_has_no_descendants(sample_store):
    work = sample_store.get_children(None)[1]
    assert get_descendants(sample_store, work.id) == []


def test_descendants_of_unknown_task(store):
    with pytest.raises(TaskNotFoundError):
        get_descendants(store, 123)
