from .estimator import Estimator
from .estimator_homography import EstimatorHomography, normalizePoints
from .estimator_pinhole_camera import EstimatorPinholeCamera
from .estimator_plane import EstimatorPlane
from .estimator_point3d import EstimatorPoint3D
from .estimator_projective3d import EstimatorProjectiveTransformation3D
