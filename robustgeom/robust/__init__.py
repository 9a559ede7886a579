from .base_robust_estimator import BaseRobustEstimator
from .homography_robust_estimator import HomographyRobustEstimator
from .listener import RobustEstimatorListener
from .pinhole_camera_robust_estimator import PinholeCameraRobustEstimator
from .plane_robust_estimator import PlaneRobustEstimator
from .point3d_robust_estimator import Point3DRobustEstimator
from .projective3d_robust_estimator import ProjectiveTransformation3DRobustEstimator
from .robust_estimator_method import RobustEstimatorMethod
