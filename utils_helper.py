import cv2
import numpy as np

from robustgeom.model import (Homography, PinholeCamera, Plane,
                              ProjectiveTransformation3D)


""" 误差计算模块（转移误差、重投影误差） """
def getTransferError(src_points, dst_points, H):
    """ 单应矩阵的平均平方转移误差 """
    transformed = Homography(H).transform(src_points)
    return float(np.mean(np.sum(np.square(transformed - dst_points), axis=1)))


def getReprojectionError(points3D, points2D, P):
    """ 相机矩阵的平均平方重投影误差 """
    projected = PinholeCamera(P).project(points3D)
    return float(np.mean(np.sum(np.square(projected - points2D), axis=1)))


""" 合成数据生成模块 """
def chooseOutliers(rng, point_number, outlier_ratio):
    """ 随机选取外点，返回 (N,) bool 外点掩码 """
    outliers = np.zeros(point_number, dtype=bool)
    outlier_number = int(round(point_number * outlier_ratio))
    outliers[rng.choice(point_number, size=outlier_number, replace=False)] = True
    return outliers


def makeQualityScores(rng, outliers):
    """ 内点的质量得分普遍高于外点 """
    scores = rng.uniform(0.5, 1.0, size=outliers.shape[0])
    scores[outliers] = rng.uniform(0.0, 0.6, size=int(np.count_nonzero(outliers)))
    return scores


def makePlanesThroughPoint(rng, point, point_number=500, outlier_ratio=0.2, outlier_std=1.0):
    """ 生成经过给定点的平面，外点平面的常数项加入高斯扰动 """
    point = np.asarray(point, dtype=np.float64)
    normals = rng.normal(size=(point_number, 3))
    normals /= np.linalg.norm(normals, axis=1)[:, None]
    planes = np.c_[normals, -normals @ point]

    outliers = chooseOutliers(rng, point_number, outlier_ratio)
    planes[outliers, 3] += rng.normal(scale=outlier_std, size=int(np.count_nonzero(outliers)))
    return planes, outliers


def makePointsOnPlane(rng, plane, point_number=500, outlier_ratio=0.2, outlier_std=1.0):
    """ 生成平面上的点，外点沿法向量方向加入高斯扰动 """
    plane = Plane(plane).normalized()
    normal = plane.normal() / np.linalg.norm(plane.normal())
    points = rng.uniform(-10.0, 10.0, size=(point_number, 3))
    # 投影到平面上
    distances = plane.signedDistance(points)
    points -= distances[:, None] * normal

    outliers = chooseOutliers(rng, point_number, outlier_ratio)
    points[outliers] += rng.normal(scale=outlier_std, size=(int(np.count_nonzero(outliers)), 1)) * normal
    return points, outliers


def randomHomography(rng):
    """ 保持朝向的单应矩阵（分母在图像范围内为正）"""
    H = np.array([[1.0, 0.0, 20.0],
                  [0.0, 1.0, -10.0],
                  [0.0, 0.0, 1.0]])
    H[0:2, 0:2] += rng.uniform(-0.1, 0.1, size=(2, 2))
    H[2, 0:2] = rng.uniform(-1e-4, 1e-4, size=2)
    return H


def makeHomographyPairs(rng, H, point_number=500, outlier_ratio=0.2, outlier_std=50.0, noise_std=0.0):
    """ 生成单应变换下的点对，外点的目标点加入较大的高斯扰动 """
    src_points = rng.uniform([0.0, 0.0], [640.0, 480.0], size=(point_number, 2))
    dst_points = Homography(H).transform(src_points)
    if noise_std > 0.0:
        dst_points += rng.normal(scale=noise_std, size=dst_points.shape)

    outliers = chooseOutliers(rng, point_number, outlier_ratio)
    dst_points[outliers] += rng.normal(scale=outlier_std, size=(int(np.count_nonzero(outliers)), 2))
    return src_points, dst_points, outliers


def randomProjectiveTransformation3D(rng):
    """ 接近单位阵的可逆三维射影变换 """
    T = np.eye(4) + rng.uniform(-0.2, 0.2, size=(4, 4))
    T[3, 3] = 1.0
    return T


def makePlanePairs(rng, T, point_number=500, outlier_ratio=0.2, outlier_std=1.0):
    """ 生成射影变换下的平面对应，外点的目标平面加入高斯扰动 """
    src_planes = rng.normal(size=(point_number, 4))
    src_planes /= np.linalg.norm(src_planes, axis=1)[:, None]
    dst_planes = ProjectiveTransformation3D(T).transformPlanes(src_planes)
    dst_planes /= np.linalg.norm(dst_planes, axis=1)[:, None]

    outliers = chooseOutliers(rng, point_number, outlier_ratio)
    dst_planes[outliers] += rng.normal(scale=outlier_std, size=(int(np.count_nonzero(outliers)), 4))
    return src_planes, dst_planes, outliers


def randomCamera(rng, skewness=0.0):
    """ 看向原点附近的相机，fx=800, fy=780, 主点 (320, 240) """
    intrinsic = np.array([[800.0, skewness, 320.0],
                          [0.0, 780.0, 240.0],
                          [0.0, 0.0, 1.0]])
    rotation = cv2.Rodrigues(rng.uniform(-0.1, 0.1, size=3))[0]
    center = np.r_[rng.uniform(-0.5, 0.5, size=2), -10.0]
    return PinholeCamera.fromDecomposition(intrinsic, rotation, center)


def makeCameraProjections(rng, camera, point_number=500, outlier_ratio=0.2, outlier_std=50.0, noise_std=0.0):
    """ 生成三维点及其投影，外点的投影加入较大的高斯扰动 """
    points3D = rng.uniform([-3.0, -3.0, -3.0], [3.0, 3.0, 3.0], size=(point_number, 3))
    points2D = camera.project(points3D)
    if noise_std > 0.0:
        points2D += rng.normal(scale=noise_std, size=points2D.shape)

    outliers = chooseOutliers(rng, point_number, outlier_ratio)
    points2D[outliers] += rng.normal(scale=outlier_std, size=(int(np.count_nonzero(outliers)), 2))
    return points3D, points2D, outliers
