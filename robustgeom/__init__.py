from .exceptions import (LockedError, NotReadyError, RefinerError,
                         RobustEstimatorError, RobustGeomError)
from .model import (CoordinatesType, Homography, PinholeCamera, Plane, Point3D,
                    ProjectiveTransformation3D)
from .ransac import InliersData, RobustEstimator
from .robust import (HomographyRobustEstimator, PinholeCameraRobustEstimator,
                     PlaneRobustEstimator, Point3DRobustEstimator,
                     ProjectiveTransformation3DRobustEstimator,
                     RobustEstimatorListener, RobustEstimatorMethod)
from .ransac.ransac_api import (findHomography, findPinholeCamera, findPlane,
                                findPoint3D, findProjectiveTransformation3D)

__version__ = "0.1.0"
