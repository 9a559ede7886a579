import logging

import cv2
import numpy as np

from ..exceptions import RefinerError
from ..model import PinholeCamera
from .refiner import Refiner

logger = logging.getLogger(__name__)


class CameraSuggestions:
    """ 相机细化时的参数建议值，None 表示未启用 """

    def __init__(self,
                 skewness=None,
                 horizontal_focal_length=None,
                 vertical_focal_length=None,
                 aspect_ratio=None,
                 principal_point=None,
                 rotation=None,
                 center=None):
        self.skewness = skewness
        self.horizontal_focal_length = horizontal_focal_length
        self.vertical_focal_length = vertical_focal_length
        self.aspect_ratio = aspect_ratio
        self.principal_point = principal_point
        self.rotation = rotation
        self.center = center

    def isEnabled(self):
        return any(value is not None for value in vars(self).values())

    def residuals(self, intrinsic, rotation, center):
        """ 各启用建议的偏差，按 skewness, 焦距, 宽高比, 主点, 旋转, 中心 顺序拼接 """
        residuals = []
        if self.skewness is not None:
            residuals.append([intrinsic[0, 1] - self.skewness])
        if self.horizontal_focal_length is not None:
            residuals.append([intrinsic[0, 0] - self.horizontal_focal_length])
        if self.vertical_focal_length is not None:
            residuals.append([intrinsic[1, 1] - self.vertical_focal_length])
        if self.aspect_ratio is not None:
            residuals.append([intrinsic[1, 1] / intrinsic[0, 0] - self.aspect_ratio])
        if self.principal_point is not None:
            residuals.append(intrinsic[0:2, 2] - np.asarray(self.principal_point, dtype=np.float64))
        if self.rotation is not None:
            # 相对旋转的旋转向量
            relative = rotation @ np.asarray(self.rotation, dtype=np.float64).T
            residuals.append(cv2.Rodrigues(relative)[0].ravel())
        if self.center is not None:
            residuals.append(center - np.asarray(self.center, dtype=np.float64))
        if not residuals:
            return np.zeros(0)
        return np.concatenate(residuals)


class PinholeCameraRefiner(Refiner):
    """ 针孔相机细化

    没有建议值时对 3x4 矩阵的 12 个元素做 LM 细化；有建议值且使用快速细化时，
    在同样的参数化上加入建议值的惩罚残差；否则使用分解后的 11 个参数
    (skewness, fx, fy, cx, cy, 旋转向量, 相机中心)，逐步增大建议权重细化。
    """

    MIN_SUGGESTION_WEIGHT = 0.1
    MAX_SUGGESTION_WEIGHT = 2.0
    SUGGESTION_WEIGHT_STEP = 0.475

    def __init__(self, suggestions=None, **kwargs):
        super().__init__(**kwargs)
        self.suggestions = suggestions or CameraSuggestions()
        self.suggestion_weight = self.MAX_SUGGESTION_WEIGHT

    def minimumInlierNumber(self):
        return 6

    def refine(self, data, inliers, model):
        if self.fast or not self.suggestions.isEnabled():
            self.homogeneous = True
            self.suggestion_weight = self.MAX_SUGGESTION_WEIGHT
            return super().refine(data, inliers, model)
        return self.__refineDecomposed(data, inliers, model)

    def __refineDecomposed(self, data, inliers, model):
        """ 在分解参数化上逐步增大建议权重，建议偏差不再减小时停止 """
        self.homogeneous = False
        self.covariance = None
        inlier_data = np.asarray(data, dtype=np.float64)[np.asarray(inliers, dtype=bool)]
        if inlier_data.shape[0] < self.minimumInlierNumber():
            raise RefinerError(f"内点数目 {inlier_data.shape[0]} 不足以细化模型")

        try:
            parameters = self.__decomposedParameters(model)
        except np.linalg.LinAlgError as e:
            raise RefinerError(str(e)) from e
        deviation = self.__suggestionDeviation(parameters)
        jacobian = None
        improved = False

        weights = np.arange(self.MIN_SUGGESTION_WEIGHT,
                            self.MAX_SUGGESTION_WEIGHT + self.SUGGESTION_WEIGHT_STEP / 2,
                            self.SUGGESTION_WEIGHT_STEP)
        for weight in weights:
            self.suggestion_weight = weight
            candidate, candidate_jacobian, _ = self._optimize(
                lambda p: self.__decomposedObjective(inlier_data, p), parameters)
            candidate_deviation = self.__suggestionDeviation(candidate)
            logger.debug("suggestion weight %.3f: deviation %g -> %g", weight, deviation, candidate_deviation)
            if jacobian is not None and candidate_deviation >= deviation:
                break
            parameters, jacobian, deviation = candidate, candidate_jacobian, candidate_deviation
            improved = True

        if self.keep_covariance:
            self.covariance = self._covariance(jacobian)
        return self.__decomposedModel(parameters), improved

    def _parameters(self, model):
        return model.descriptor.ravel()

    def _model(self, parameters):
        return PinholeCamera(parameters.reshape((3, 4)))

    def _residuals(self, data, parameters):
        matrix = parameters.reshape((3, 4))
        reprojection = self.__reprojection(data, matrix)
        if not self.suggestions.isEnabled():
            return reprojection
        try:
            intrinsic, rotation, center = PinholeCamera(matrix).decompose()
        except np.linalg.LinAlgError as e:
            raise RefinerError("细化过程中相机矩阵退化") from e
        return np.r_[reprojection,
                     self.suggestion_weight * self.suggestions.residuals(intrinsic, rotation, center)]

    def __decomposedObjective(self, data, parameters):
        intrinsic, rotation, center = self.__decompose(parameters)
        matrix = intrinsic @ np.c_[rotation, -rotation @ center]
        return np.r_[self.__reprojection(data, matrix),
                     self.suggestion_weight * self.suggestions.residuals(intrinsic, rotation, center)]

    def __suggestionDeviation(self, parameters):
        return float(np.linalg.norm(self.suggestions.residuals(*self.__decompose(parameters))))

    @staticmethod
    def __reprojection(data, matrix):
        projected = np.c_[data[:, 0:3], np.ones(data.shape[0])] @ matrix.T
        return (projected[:, 0:2] / projected[:, 2:3] - data[:, 3:5]).ravel()

    @staticmethod
    def __decomposedParameters(model):
        intrinsic, rotation, center = model.decompose()
        rotation_vector = cv2.Rodrigues(rotation)[0].ravel()
        return np.r_[intrinsic[0, 1], intrinsic[0, 0], intrinsic[1, 1], intrinsic[0:2, 2],
                     rotation_vector, center]

    @staticmethod
    def __decompose(parameters):
        skewness, fx, fy, cx, cy = parameters[0:5]
        intrinsic = np.array([[fx, skewness, cx],
                              [0.0, fy, cy],
                              [0.0, 0.0, 1.0]])
        rotation = cv2.Rodrigues(np.ascontiguousarray(parameters[5:8]))[0]
        return intrinsic, rotation, parameters[8:11]

    def __decomposedModel(self, parameters):
        return PinholeCamera.fromDecomposition(*self.__decompose(parameters))
