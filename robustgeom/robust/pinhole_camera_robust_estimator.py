import numpy as np

from ..estimator import EstimatorPinholeCamera
from ..refiner import CameraSuggestions, PinholeCameraRefiner
from .base_robust_estimator import BaseRobustEstimator


class PinholeCameraRobustEstimator(BaseRobustEstimator):
    """ 由三维点和其二维投影的对应关系，使用 DLT 鲁棒估计针孔相机

    细化时可以为部分相机参数给出建议值，启用的建议以惩罚残差的形式
    将细化结果拉向建议值。
    """

    MINIMUM_SIZE = 6
    DEFAULT_THRESHOLD = 1.0
    DEFAULT_STOP_THRESHOLD = 1e-3
    DEFAULT_NORMALIZE_SUBSET = True

    DEFAULT_SUGGESTED_SKEWNESS = 0.0
    DEFAULT_SUGGESTED_FOCAL_LENGTH = 1.0
    DEFAULT_SUGGESTED_ASPECT_RATIO = 1.0

    def __init__(self, points3D=None, points2D=None, **kwargs):
        """
        参数
        ----------
        points3D : numpy 可选
            (N,3) 三维点
        points2D : numpy 可选
            (N,2) 三维点在图像中的投影，N 至少为 6
        """
        super().__init__(**kwargs)
        self._points3D = None
        self._points2D = None
        self._normalize_subset = self.DEFAULT_NORMALIZE_SUBSET

        # 建议值，enabled 标志与数值分开保存
        self._suggest_skewness = False
        self._suggested_skewness = self.DEFAULT_SUGGESTED_SKEWNESS
        self._suggest_horizontal_focal_length = False
        self._suggested_horizontal_focal_length = self.DEFAULT_SUGGESTED_FOCAL_LENGTH
        self._suggest_vertical_focal_length = False
        self._suggested_vertical_focal_length = self.DEFAULT_SUGGESTED_FOCAL_LENGTH
        self._suggest_aspect_ratio = False
        self._suggested_aspect_ratio = self.DEFAULT_SUGGESTED_ASPECT_RATIO
        self._suggest_principal_point = False
        self._suggested_principal_point = np.zeros(2)
        self._suggest_rotation = False
        self._suggested_rotation = np.eye(3)
        self._suggest_center = False
        self._suggested_center = np.zeros(3)

        if points3D is not None or points2D is not None:
            self.setPoints(points3D, points2D)

    def getPoints3D(self):
        return self._points3D

    def getPoints2D(self):
        return self._points2D

    def setPoints(self, points3D, points2D):
        self._checkLocked()
        points3D = self._asRows(points3D, 3, "points3D")
        points2D = self._asRows(points2D, 2, "points2D")
        if points3D.shape[0] < self.MINIMUM_SIZE:
            raise ValueError(f"至少需要 {self.MINIMUM_SIZE} 个点对，输入为 {points3D.shape[0]}")
        if points3D.shape[0] != points2D.shape[0]:
            raise ValueError(f"点对数目不一致：{points3D.shape[0]} != {points2D.shape[0]}")
        self._points3D = points3D
        self._points2D = points2D

    def isNormalizeSubsetEnabled(self):
        return self._normalize_subset

    def setNormalizeSubsetEnabled(self, normalize_subset):
        self._checkLocked()
        self._normalize_subset = bool(normalize_subset)

    def isSuggestSkewnessValueEnabled(self):
        return self._suggest_skewness

    def setSuggestSkewnessValueEnabled(self, enabled):
        self._checkLocked()
        self._suggest_skewness = bool(enabled)

    def getSuggestedSkewnessValue(self):
        return self._suggested_skewness

    def setSuggestedSkewnessValue(self, value):
        self._checkLocked()
        self._suggested_skewness = float(value)

    def isSuggestHorizontalFocalLengthEnabled(self):
        return self._suggest_horizontal_focal_length

    def setSuggestHorizontalFocalLengthEnabled(self, enabled):
        self._checkLocked()
        self._suggest_horizontal_focal_length = bool(enabled)

    def getSuggestedHorizontalFocalLengthValue(self):
        return self._suggested_horizontal_focal_length

    def setSuggestedHorizontalFocalLengthValue(self, value):
        self._checkLocked()
        self._suggested_horizontal_focal_length = float(value)

    def isSuggestVerticalFocalLengthEnabled(self):
        return self._suggest_vertical_focal_length

    def setSuggestVerticalFocalLengthEnabled(self, enabled):
        self._checkLocked()
        self._suggest_vertical_focal_length = bool(enabled)

    def getSuggestedVerticalFocalLengthValue(self):
        return self._suggested_vertical_focal_length

    def setSuggestedVerticalFocalLengthValue(self, value):
        self._checkLocked()
        self._suggested_vertical_focal_length = float(value)

    def isSuggestAspectRatioEnabled(self):
        return self._suggest_aspect_ratio

    def setSuggestAspectRatioEnabled(self, enabled):
        self._checkLocked()
        self._suggest_aspect_ratio = bool(enabled)

    def getSuggestedAspectRatioValue(self):
        return self._suggested_aspect_ratio

    def setSuggestedAspectRatioValue(self, value):
        self._checkLocked()
        self._suggested_aspect_ratio = float(value)

    def isSuggestPrincipalPointEnabled(self):
        return self._suggest_principal_point

    def setSuggestPrincipalPointEnabled(self, enabled):
        self._checkLocked()
        self._suggest_principal_point = bool(enabled)

    def getSuggestedPrincipalPointValue(self):
        return self._suggested_principal_point

    def setSuggestedPrincipalPointValue(self, value):
        self._checkLocked()
        value = np.array(value, dtype=np.float64).ravel()
        if value.shape[0] != 2:
            raise ValueError(f"主点需要 2 个坐标，输入为 {value.shape[0]}")
        self._suggested_principal_point = value

    def isSuggestRotationEnabled(self):
        return self._suggest_rotation

    def setSuggestRotationEnabled(self, enabled):
        self._checkLocked()
        self._suggest_rotation = bool(enabled)

    def getSuggestedRotationValue(self):
        return self._suggested_rotation

    def setSuggestedRotationValue(self, value):
        """ 3x3 旋转矩阵 """
        self._checkLocked()
        value = np.array(value, dtype=np.float64)
        if value.shape != (3, 3):
            raise ValueError(f"旋转必须是 3x3 矩阵，输入形状为 {value.shape}")
        self._suggested_rotation = value

    def isSuggestCenterEnabled(self):
        return self._suggest_center

    def setSuggestCenterEnabled(self, enabled):
        self._checkLocked()
        self._suggest_center = bool(enabled)

    def getSuggestedCenterValue(self):
        return self._suggested_center

    def setSuggestedCenterValue(self, value):
        self._checkLocked()
        value = np.array(value, dtype=np.float64).ravel()
        if value.shape[0] != 3:
            raise ValueError(f"相机中心需要 3 个坐标，输入为 {value.shape[0]}")
        self._suggested_center = value

    def getSuggestions(self):
        """ 当前启用的建议值 """
        return CameraSuggestions(
            skewness=self._suggested_skewness if self._suggest_skewness else None,
            horizontal_focal_length=(self._suggested_horizontal_focal_length
                                     if self._suggest_horizontal_focal_length else None),
            vertical_focal_length=(self._suggested_vertical_focal_length
                                   if self._suggest_vertical_focal_length else None),
            aspect_ratio=self._suggested_aspect_ratio if self._suggest_aspect_ratio else None,
            principal_point=self._suggested_principal_point if self._suggest_principal_point else None,
            rotation=self._suggested_rotation if self._suggest_rotation else None,
            center=self._suggested_center if self._suggest_center else None)

    def _correspondenceNumber(self):
        return None if self._points3D is None else self._points3D.shape[0]

    def _data(self):
        return np.ascontiguousarray(np.c_[self._points3D, self._points2D])

    def _createEstimator(self):
        return EstimatorPinholeCamera(normalize_subset=self._normalize_subset)

    def _createRefiner(self, standard_deviation):
        return PinholeCameraRefiner(suggestions=self.getSuggestions(),
                                    fast=self._use_fast_refinement,
                                    keep_covariance=self._keep_covariance,
                                    standard_deviation=standard_deviation)
