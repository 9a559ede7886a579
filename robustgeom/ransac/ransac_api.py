import logging

import numpy as np

from ..robust import (HomographyRobustEstimator, PinholeCameraRobustEstimator,
                      PlaneRobustEstimator, Point3DRobustEstimator,
                      ProjectiveTransformation3DRobustEstimator,
                      RobustEstimatorMethod)

logger = logging.getLogger(__name__)


def __transformInliersToMask(inliers):
    """ 转换内点掩码为 cv2 match 所需的 0 / 1 mask

    参数
    --------
    inliers : numpy
        (N,) bool 内点掩码

    返回
    --------
    numpy
        (N,1) 包含 0 1 的 mask
    """
    return np.asarray(inliers, dtype=np.uint8).reshape(-1, 1)


def __run(robust_estimator, threshold, conf, max_iters, refine):
    """ 配置并运行鲁棒估计器，返回模型描述子和内点 mask """
    if threshold is not None:
        robust_estimator.setThreshold(threshold)
    robust_estimator.setConfidence(conf)
    robust_estimator.setMaxIterations(max_iters)
    robust_estimator.setResultRefined(refine)
    robust_estimator.setComputeAndKeepInliersEnabled(True)

    model = robust_estimator.estimate()

    logger.info("Number of iterations = %d", robust_estimator.getStatistics().iteration_number)

    mask = __transformInliersToMask(robust_estimator.getInliersData().inliers)
    return model.descriptor, mask


""" 用于特征点匹配和几何求解的函数，接口与 cv2.findHomography 类似 """
def findHomography(src_points, dst_points, method=RobustEstimatorMethod.RANSAC, threshold=1.0, conf=0.99,
                   max_iters=5000, quality_scores=None, refine=True, random_generator=None):
    """ 单应矩阵求解

    参数
    --------
    src_points : numpy
        (N,2) 源图像特征点集合
    dst_points : numpy
        (N,2) 目标图像特征点集合
    method : RobustEstimatorMethod
        鲁棒估计方法
    threshold : float
        决定内点和外点的阈值（中位数方法为停止阈值）
    conf : float
        置信参数
    max_iters : int
        最大迭代次数
    quality_scores : numpy
        特征点匹配的质量得分，PROSAC / PROMEDS 需要
    refine : bool
        是否使用全部内点细化结果
    random_generator : None, int or numpy.random.Generator
        随机数源

    返回
    --------
    numpy, numpy
        单应矩阵，标注内点和外点的mask
    """
    robust_estimator = HomographyRobustEstimator(np.reshape(src_points, (-1, 2)),
                                                 np.reshape(dst_points, (-1, 2)),
                                                 method=method,
                                                 quality_scores=quality_scores,
                                                 random_generator=random_generator)
    return __run(robust_estimator, threshold, conf, max_iters, refine)


def findPoint3D(planes, method=RobustEstimatorMethod.RANSAC, threshold=None, conf=0.99, max_iters=5000,
                quality_scores=None, refine=True, random_generator=None):
    """ 平面交点求解，返回齐次点 [x, y, z, w] 和内点 mask """
    robust_estimator = Point3DRobustEstimator(planes,
                                              method=method,
                                              quality_scores=quality_scores,
                                              random_generator=random_generator)
    return __run(robust_estimator, threshold, conf, max_iters, refine)


def findPlane(points, method=RobustEstimatorMethod.RANSAC, threshold=None, conf=0.99, max_iters=5000,
              quality_scores=None, refine=True, random_generator=None):
    """ 平面拟合，返回平面系数 [a, b, c, d] 和内点 mask """
    robust_estimator = PlaneRobustEstimator(points,
                                            method=method,
                                            quality_scores=quality_scores,
                                            random_generator=random_generator)
    return __run(robust_estimator, threshold, conf, max_iters, refine)


def findProjectiveTransformation3D(src_planes, dst_planes, method=RobustEstimatorMethod.RANSAC, threshold=None,
                                   conf=0.99, max_iters=5000, quality_scores=None, refine=True,
                                   random_generator=None):
    """ 平面对应的三维射影变换求解，返回 4x4 变换矩阵和内点 mask """
    robust_estimator = ProjectiveTransformation3DRobustEstimator(src_planes,
                                                                 dst_planes,
                                                                 method=method,
                                                                 quality_scores=quality_scores,
                                                                 random_generator=random_generator)
    return __run(robust_estimator, threshold, conf, max_iters, refine)


def findPinholeCamera(points3D, points2D, method=RobustEstimatorMethod.RANSAC, threshold=1.0, conf=0.99,
                      max_iters=5000, quality_scores=None, refine=True, random_generator=None):
    """ DLT 相机求解，返回 3x4 相机矩阵和内点 mask """
    robust_estimator = PinholeCameraRobustEstimator(points3D,
                                                    points2D,
                                                    method=method,
                                                    quality_scores=quality_scores,
                                                    random_generator=random_generator)
    return __run(robust_estimator, threshold, conf, max_iters, refine)
