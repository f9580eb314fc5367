"""Tests for skeleton traversal, world positions and render sync."""

import numpy as np
import pytest

from handmimic.core.errors import GraphError
from handmimic.core.quaternion import quat_angle, quat_identity
from handmimic.kinematics.skeleton import (
    SkeletonGraph,
    default_max_depth,
    parent_chain,
    world_position,
)


class Handle:
    """Stand-in render object; plain instances support weak references."""


def test_parent_chain_is_ordered_base_to_target(l10):
    tip = l10.joint_lookup()["index_dip"]

    chain = parent_chain(l10, tip)

    assert [j.name for j in chain] == [
        "index_mcp_roll", "index_mcp_pitch", "index_pip", "index_dip",
    ]


def test_base_joint_chain_is_itself(l10):
    base = l10.joint_lookup()["middle_mcp_pitch"]
    assert [j.name for j in parent_chain(l10, base)] == ["middle_mcp_pitch"]


def test_world_position_sums_local_positions(two_joint_finger):
    joint = two_joint_finger.joint_lookup()["index_b"]
    np.testing.assert_allclose(world_position(two_joint_finger, joint), [0.0, 0.0, 0.15])


def test_world_position_of_thumb_tip(l10):
    lookup = l10.joint_lookup()
    expected = sum(
        lookup[name].position_array
        for name in ("thumb_cmc_roll", "thumb_cmc_yaw", "thumb_cmc_pitch", "thumb_mcp", "thumb_ip")
    )
    np.testing.assert_allclose(world_position(l10, lookup["thumb_ip"]), expected)


def test_default_max_depth(l10, metadata_factory, joint_factory):
    assert default_max_depth(l10) == 10
    single = metadata_factory({"index": [joint_factory("only", "base", "l")]})
    assert default_max_depth(single) == 2


def test_cyclic_metadata_raises(cyclic_metadata):
    joint = cyclic_metadata.joint_lookup()["loop_a"]

    with pytest.raises(GraphError):
        parent_chain(cyclic_metadata, joint)

    with pytest.raises(GraphError):
        SkeletonGraph(cyclic_metadata)


def test_explicit_depth_cap_too_small(l10):
    tip = l10.joint_lookup()["thumb_ip"]
    with pytest.raises(GraphError):
        parent_chain(l10, tip, max_depth=3)


def test_unresolvable_parent_attaches_to_base(metadata_factory, joint_factory):
    metadata = metadata_factory({
        "index": [joint_factory("orphan", "missing_link", "orphan_link", position=(0.1, 0.0, 0.0))],
    })

    graph = SkeletonGraph(metadata)

    assert graph.joint("orphan").is_root
    np.testing.assert_allclose(graph.world_position("orphan"), [0.1, 0.0, 0.0])


class TestSkeletonGraph:

    def test_roots_and_hierarchy(self, l10):
        graph = SkeletonGraph(l10)

        root_names = {j.name for j in graph.roots()}
        assert root_names == {
            "thumb_cmc_roll", "index_mcp_roll", "middle_mcp_pitch",
            "ring_mcp_roll", "pinky_mcp_roll",
        }
        assert [j.name for j in graph.children("index_pip")] == ["index_dip"]
        assert [j.name for j in graph.descendants("middle_mcp_pitch")] == [
            "middle_pip", "middle_dip",
        ]

    def test_graph_world_position_matches_free_function(self, l10):
        graph = SkeletonGraph.build(l10)
        lookup = l10.joint_lookup()
        for name in ("thumb_ip", "ring_dip", "middle_mcp_pitch"):
            np.testing.assert_allclose(
                graph.world_position(name), world_position(l10, lookup[name])
            )

    def test_world_rotation_is_identity(self, l10):
        graph = SkeletonGraph(l10)
        graph.apply_joint_values({"index_pip": 1.0})
        np.testing.assert_allclose(graph.world_rotation("index_dip"), quat_identity())

    def test_world_axis_is_local_axis(self, l10):
        graph = SkeletonGraph(l10)
        graph.apply_joint_values({"thumb_cmc_roll": 0.5})
        lookup = l10.joint_lookup()

        np.testing.assert_allclose(graph.world_axis("index_pip"), [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(
            graph.world_axis("thumb_cmc_roll"), lookup["thumb_cmc_roll"].axis_array
        )
        assert np.linalg.norm(graph.world_axis("thumb_cmc_roll")) == pytest.approx(1.0)

    def test_unknown_joint_lookup(self, l10):
        graph = SkeletonGraph(l10)
        with pytest.raises(KeyError):
            graph.joint("elbow")

    def test_apply_joint_values(self, l10):
        graph = SkeletonGraph(l10)

        updated = graph.apply_joint_values({"index_pip": 0.5, "ghost": 1.0})

        assert updated == 1
        rotation = graph.joint("index_pip").rotation
        assert quat_angle(quat_identity(), rotation) == pytest.approx(0.5)
        assert "ghost" not in graph

    def test_reset_pose(self, l10):
        graph = SkeletonGraph(l10)
        graph.apply_joint_values({"index_pip": 0.5})

        graph.reset_pose()

        np.testing.assert_allclose(graph.joint("index_pip").rotation, quat_identity())

    def test_push_transforms_skips_collected_handles(self, l10):
        alive = Handle()
        doomed = Handle()
        graph = SkeletonGraph(l10, handles={"index_pip": alive, "index_dip": doomed})
        del doomed

        calls = []
        pushed = graph.push_transforms(lambda handle, pos, rot: calls.append(handle))

        assert pushed == 1
        assert calls == [alive]

    def test_detach_handles(self, l10):
        handle = Handle()
        graph = SkeletonGraph(l10, handles={"index_pip": handle})

        graph.detach_handles()

        assert graph.push_transforms(lambda *args: None) == 0

    def test_local_transforms_are_copies(self, l10):
        graph = SkeletonGraph(l10)
        transforms = graph.local_transforms()

        transforms["index_pip"][0][:] = 99.0

        assert not np.allclose(graph.joint("index_pip").position, 99.0)

    def test_to_skeleton_data(self, l10):
        data = SkeletonGraph(l10).to_skeleton_data()

        assert len(data.joints) == 20
        assert data.palm_dimensions.length > 0
        np.testing.assert_allclose(data.root_rotation, quat_identity())
