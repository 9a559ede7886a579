from .models import (CoordinatesType, Homography, Model, PinholeCamera, Plane,
                     Point3D, ProjectiveTransformation3D)
