from enum import Enum

import cv2
import numpy as np
from scipy import linalg as sp_linalg


class CoordinatesType(Enum):
    """ 模型细化时使用的坐标类型 """
    INHOMOGENEOUS = 0
    HOMOGENEOUS = 1


class Model:
    """ 鲁棒估计求解模型基类 """

    def __init__(self):
        self.descriptor = None

    def normalized(self):
        """ 返回描述子 Frobenius 范数为 1 的新模型 """
        norm = np.linalg.norm(self.descriptor)
        if norm == 0.0:
            return type(self)(self.descriptor.copy())
        return type(self)(self.descriptor / norm)


class Point3D(Model):
    """ 齐次坐标表示的三维点 [x, y, z, w] """

    def __init__(self, coordinates=np.array([0.0, 0.0, 0.0, 1.0])):
        super().__init__()
        coordinates = np.array(coordinates, dtype=np.float64).ravel()
        if coordinates.shape[0] == 3:
            coordinates = np.r_[coordinates, 1.0]
        if coordinates.shape[0] != 4:
            raise ValueError(f"三维点需要 3 或 4 个坐标，输入为 {coordinates.shape[0]}")
        self.descriptor = coordinates

    def inhomogeneous(self):
        """ 非齐次坐标 [x, y, z]，无穷远点返回 inf """
        w = self.descriptor[3]
        if w == 0.0:
            return np.full(3, np.inf)
        return self.descriptor[0:3] / w

    def homogeneous(self):
        """ 单位范数的齐次坐标 """
        return self.descriptor / np.linalg.norm(self.descriptor)


class Plane(Model):
    """ 平面 a*x + b*y + c*z + d = 0，描述子为 [a, b, c, d] """

    def __init__(self, coefficients=np.array([0.0, 0.0, 1.0, 0.0])):
        super().__init__()
        self.descriptor = np.array(coefficients, dtype=np.float64).ravel()

    def normal(self):
        return self.descriptor[0:3]

    def signedDistance(self, points):
        """ 点到平面的有符号距离

        参数
        ----------
        points : numpy
            (N,3) 非齐次点或 (N,4) 齐次点

        返回
        ----------
        numpy
            (N,) 有符号距离
        """
        points = np.atleast_2d(np.asarray(points, dtype=np.float64))
        if points.shape[1] == 3:
            points = np.c_[points, np.ones(points.shape[0])]
        normal_norm = np.linalg.norm(self.normal())
        with np.errstate(divide='ignore', invalid='ignore'):
            return (points @ self.descriptor) / (points[:, 3] * normal_norm)


class Homography(Model):
    """ 二维射影变换（单应矩阵）模型 """

    def __init__(self, matrix=np.eye(3)):
        super().__init__()
        self.descriptor = np.array(matrix, dtype=np.float64).reshape((3, 3))

    def transform(self, points):
        """ 将 (N,2) 点集通过单应矩阵变换到目标图像 """
        points = np.ascontiguousarray(points, dtype=np.float64).reshape(-1, 1, 2)
        if points.shape[0] == 0:
            return np.zeros((0, 2))
        return cv2.perspectiveTransform(points, self.descriptor).reshape(-1, 2)


class ProjectiveTransformation3D(Model):
    """ 三维射影变换模型，作用于齐次点 X' = T X """

    def __init__(self, matrix=np.eye(4)):
        super().__init__()
        self.descriptor = np.array(matrix, dtype=np.float64).reshape((4, 4))

    def transformPoints(self, points):
        """ 变换 (N,4) 齐次点 """
        return np.atleast_2d(points) @ self.descriptor.T

    def transformPlanes(self, planes):
        """ 变换 (N,4) 平面，平面按 T^-T 变换 """
        inverse_transpose = np.linalg.inv(self.descriptor).T
        return np.atleast_2d(planes) @ inverse_transpose.T


class PinholeCamera(Model):
    """ 针孔相机模型 P = K [R | -R C] """

    def __init__(self, matrix=np.c_[np.eye(3), np.zeros(3)]):
        super().__init__()
        self.descriptor = np.array(matrix, dtype=np.float64).reshape((3, 4))

    @classmethod
    def fromDecomposition(cls, intrinsic, rotation, center):
        """ 通过内参矩阵、旋转矩阵和相机中心构建相机 """
        center = np.asarray(center, dtype=np.float64).ravel()
        return cls(intrinsic @ np.c_[rotation, -rotation @ center])

    def project(self, points):
        """ 将 (N,3) 三维点投影为 (N,2) 图像点 """
        points = np.atleast_2d(np.asarray(points, dtype=np.float64))
        projected = np.c_[points, np.ones(points.shape[0])] @ self.descriptor.T
        with np.errstate(divide='ignore', invalid='ignore'):
            return projected[:, 0:2] / projected[:, 2:3]

    def decompose(self):
        """ RQ 分解相机矩阵

        返回
        ----------
        numpy, numpy, numpy
            内参矩阵 K（K[2,2] = 1，对角线为正），旋转矩阵 R，相机中心 C
        """
        left = self.descriptor[:, 0:3]
        if np.linalg.det(left) < 0.0:
            left = -left
        intrinsic, rotation = sp_linalg.rq(left)
        signs = np.sign(np.diag(intrinsic))
        signs[signs == 0.0] = 1.0
        intrinsic = intrinsic @ np.diag(signs)
        rotation = np.diag(signs) @ rotation
        intrinsic = intrinsic / intrinsic[2, 2]
        center = -np.linalg.solve(self.descriptor[:, 0:3], self.descriptor[:, 3])
        return intrinsic, rotation, center

    def intrinsicParameters(self):
        """ 内参字典：skewness, 焦距, 宽高比, 主点 """
        intrinsic, _, _ = self.decompose()
        return {
            'skewness': intrinsic[0, 1],
            'horizontal_focal_length': intrinsic[0, 0],
            'vertical_focal_length': intrinsic[1, 1],
            'aspect_ratio': intrinsic[1, 1] / intrinsic[0, 0],
            'principal_point': intrinsic[0:2, 2].copy(),
        }
