"""Unit tests for the DirectoryNode class."""

from anytree import PreOrderIter

from gitperms.permission_tree.directory_node import DirectoryNode


def test_directory_node_defaults():
    node = DirectoryNode("root")
    assert node.name == "root"
    assert node.parent is None
    assert node.dir_path == ""
    assert node.file_count == 0
    assert node.changed_count == 0


def test_directory_node_hierarchy():
    root = DirectoryNode("/srv", dir_path="/srv", file_count=2)
    www = DirectoryNode("www", parent=root, dir_path="/srv/www", file_count=5, changed_count=2)
    DirectoryNode("static", parent=www, dir_path="/srv/www/static", changed_count=1)

    assert [node.name for node in PreOrderIter(root)] == ["/srv", "www", "static"]
    assert sum(node.file_count for node in PreOrderIter(root)) == 7
    assert sum(node.changed_count for node in PreOrderIter(root)) == 3
    assert www.children[0].dir_path == "/srv/www/static"
