import gc

import pytest

from arbor.exceptions import ContractException, NodeNameException
from arbor.handlers import DirectoryHandler, LeafHandler
from arbor.tree import Directory, Leaf, Root, node_from_handler
from conftest import Planet, Planets


def test_root_path_is_slash():
    root = Root(Planets("solar"))

    assert root.path == "/"
    assert root.parent is None
    assert root.is_directory


def test_child_paths_follow_parent():
    root = Root(Planets("solar"))
    moons = Directory(name="moons", handler=Planets("moons"))
    luna = Leaf(name="luna", handler=Planet("luna"))

    root.add_child(moons)
    moons.add_child(luna)

    assert moons.path == "/moons"
    assert luna.path == "/moons/luna"
    assert luna.parent is moons
    assert not luna.is_directory


def test_unattached_nodes_sit_below_root():
    moons = Directory(name="moons", handler=Planets("moons"))
    luna = Leaf(name="luna", handler=Planet("luna"))

    assert moons.path == "/moons"
    assert luna.path == "/luna"

    moons.add_child(luna)

    assert luna.path == "/moons/luna"


def test_removed_child_keeps_last_path():
    root = Root(Planets("solar"))
    earth = Leaf(name="earth", handler=Planet("earth"))
    root.add_child(earth)

    removed = root.remove_child("earth")

    assert removed is earth
    assert earth.parent is None
    assert earth.path == "/earth"
    assert root.get_child("earth") is None


def test_parent_is_not_kept_alive_by_children():
    """Test that children only hold a weak reference to their parent"""
    moons = Directory(name="moons", handler=Planets("moons"))
    luna = Leaf(name="luna", handler=Planet("luna"))
    moons.add_child(luna)

    del moons
    gc.collect()

    assert luna.parent is None
    assert luna.path == "/moons/luna"


def test_directory_flags_come_from_handler():
    cached = Directory(name="a", handler=Planets("a", use_cache=True, builtin_progress=False))
    uncached = Directory(name="b", handler=Planets("b", use_cache=False))

    assert cached.use_cache is True
    assert cached.builtin_progress is False
    assert cached.cache_valid is False
    assert uncached.use_cache is False
    assert uncached.builtin_progress is True


def test_invalidate_drops_children_and_cache_flag():
    root = Root(Planets("solar"))
    root.replace_children(
        [
            Leaf(name="earth", handler=Planet("earth")),
            Leaf(name="mars", handler=Planet("mars")),
        ]
    )
    root.cache_valid = True

    root.invalidate()

    assert root.children == {}
    assert root.cache_valid is False


def test_replace_children_detaches_previous_set():
    root = Root(Planets("solar"))
    earth = Leaf(name="earth", handler=Planet("earth"))
    root.add_child(earth)

    root.replace_children([Leaf(name="mars", handler=Planet("mars"))])

    assert list(root.children) == ["mars"]
    assert earth.parent is None


def test_node_from_handler_picks_variant():
    parent = Root(Planets("solar"))

    directory = node_from_handler(Planets("moons"), parent=parent)
    leaf = node_from_handler(Planet("earth"), parent=parent)

    assert isinstance(directory, Directory)
    assert isinstance(leaf, Leaf)
    assert leaf.path == "/earth"
    # Materializing a node does not register it with the parent
    assert parent.children == {}


@pytest.mark.parametrize("result", ["earth", 42, {"name": "earth"}, object()])
def test_node_from_handler_rejects_other_results(result):
    with pytest.raises(ContractException):
        node_from_handler(result)


@pytest.mark.parametrize("name", ["", "   ", None, 7])
def test_handler_requires_a_name(name):
    with pytest.raises(NodeNameException) as exc_info:
        LeafHandler(name)

    assert exc_info.value.error_id == "NodeNameIsNullOrEmpty"


def test_handler_defaults():
    handler = DirectoryHandler("plain")

    assert handler.use_cache is False
    assert handler.builtin_progress is True
    assert handler.get_child_item() is None
    assert handler.get_child_item_dynamic_parameters() is None
