import numpy as np
import pytest

from lidaroff import calibration


def test_camera_matrix_holds_intrinsics():
    k = calibration.camera_matrix()
    assert k.shape == (3, 3)
    assert k[0, 0] == pytest.approx(779.5889829009982, rel=1e-6)
    assert k[1, 1] == pytest.approx(774.6647059663499, rel=1e-6)
    assert k[0, 2] == pytest.approx(649.4586501858179, rel=1e-6)
    assert k[1, 2] == pytest.approx(386.4713599380453, rel=1e-6)
    assert k[2].tolist() == [0.0, 0.0, 1.0]
    assert k[0, 1] == 0.0 and k[1, 0] == 0.0


def test_intrinsics_are_single_precision():
    assert calibration.FX == float(np.float32(779.5889829009982))
    assert calibration.camera_matrix()[0, 0] == calibration.FX


def test_distortion_coefficients():
    d = calibration.distortion_coefficients()
    assert d.shape == (4, 1)
    assert d[0, 0] == pytest.approx(-0.322795936286537, rel=1e-6)
    assert d[1, 0] == pytest.approx(0.075461621612223, rel=1e-6)
    assert d[2, 0] == 0.0
    assert d[3, 0] == 0.0


@pytest.mark.parametrize(
    "factory", [calibration.rotation_x, calibration.rotation_y, calibration.rotation_z]
)
def test_rotations_are_proper(factory):
    r = factory()
    assert r.shape == (3, 3)
    np.testing.assert_allclose(r @ r.T, np.eye(3), atol=1e-12)
    assert np.linalg.det(r) == pytest.approx(1.0)


def test_rotation_axes_are_fixed():
    assert calibration.rotation_x()[0].tolist() == [1.0, 0.0, 0.0]
    assert calibration.rotation_y()[1].tolist() == [0.0, 1.0, 0.0]
    assert calibration.rotation_z()[2].tolist() == [0.0, 0.0, 1.0]


def test_rotation_y_sign_convention():
    r = calibration.rotation_y()
    assert r[0, 2] == pytest.approx(-r[2, 0])
    assert r[2, 0] > 0


def test_rotation_translation_layout():
    rotation = np.arange(9, dtype=float).reshape(3, 3)
    rt = calibration.rotation_translation(rotation)
    assert rt.shape == (3, 4)
    np.testing.assert_array_equal(rt[:, :3], rotation)
    assert rt[0, 3] == 0.0
    assert rt[1, 3] == pytest.approx(0.108253175473, rel=1e-6)
    assert rt[2, 3] == 0.0625


def test_rotation_translation_rejects_bad_shape():
    with pytest.raises(ValueError):
        calibration.rotation_translation(np.eye(4))


def test_lidar_calibration_projects_like_camera_model():
    projection = calibration.lidar_calibration()
    assert projection.shape == (3, 4)
    rotation = calibration.rotation_x() @ calibration.rotation_y() @ calibration.rotation_z()
    translation = np.array(
        [calibration.VELODYNE_X, calibration.VELODYNE_Y, calibration.VELODYNE_Z]
    )
    point = np.array([3.0, -1.0, 0.5])
    expected = calibration.camera_matrix() @ (rotation @ point + translation)
    np.testing.assert_allclose(projection @ np.append(point, 1.0), expected)


def test_lidar_origin_maps_to_translated_point():
    projection = calibration.lidar_calibration()
    k = calibration.camera_matrix()
    t = np.array([calibration.VELODYNE_X, calibration.VELODYNE_Y, calibration.VELODYNE_Z])
    np.testing.assert_allclose(projection[:, 3], k @ t)