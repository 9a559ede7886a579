from .solver_engine import SolverEngine
from .solver_homography_four_point import SolverHomographyFourPoint
from .solver_pinhole_camera_dlt import SolverPinholeCameraDLT
from .solver_plane_three_point import SolverPlaneThreePoint
from .solver_point3d_three_plane import SolverPoint3DThreePlane
from .solver_projective3d_five_plane import SolverProjectiveTransformation3DFivePlane
