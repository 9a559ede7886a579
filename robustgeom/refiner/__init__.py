from .homography_refiner import HomographyRefiner
from .pinhole_camera_refiner import CameraSuggestions, PinholeCameraRefiner
from .plane_refiner import PlaneRefiner
from .point3d_refiner import Point3DRefiner
from .projective3d_refiner import ProjectiveTransformation3DRefiner
from .refiner import Refiner
