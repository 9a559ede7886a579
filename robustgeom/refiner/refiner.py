import logging

import numpy as np
from scipy.optimize import approx_fprime, least_squares

from ..exceptions import RefinerError

logger = logging.getLogger(__name__)


class Refiner:
    """ 模型细化基类

    使用全部内点对最佳候选模型做非线性最小二乘（Levenberg-Marquardt）细化，
    并可由雅可比矩阵计算参数的协方差矩阵。
    """

    # 齐次参数化的尺度约束权重
    GAUGE_WEIGHT = 1.0
    # 快速细化的收敛容差和最大函数评估次数
    FAST_TOLERANCE = 1e-6
    FAST_MAX_FUNCTION_EVALUATIONS = 50
    TOLERANCE = 1e-10

    # 参数是否为齐次（只确定到尺度）
    homogeneous = True

    def __init__(self, fast=False, keep_covariance=False, standard_deviation=1.0):
        self.fast = fast                                  # 是否使用快速细化
        self.keep_covariance = keep_covariance            # 是否计算协方差
        self.standard_deviation = standard_deviation      # 残差的标准差
        self.covariance = None                            # 细化后参数的协方差

    def minimumInlierNumber(self):
        """ 细化所需的最少内点数 """
        raise NotImplementedError

    def refine(self, data, inliers, model):
        """ 使用内点细化模型

        参数
        ----------
        data : numpy
            输入的数据点集
        inliers : numpy
            (N,) bool 内点掩码
        model : Model
            需要细化的模型

        返回
        ----------
        Model, bool
            细化后的模型，细化是否减小了代价
        """
        self.covariance = None
        inlier_data = np.asarray(data, dtype=np.float64)[np.asarray(inliers, dtype=bool)]
        if inlier_data.shape[0] < self.minimumInlierNumber():
            raise RefinerError(f"内点数目 {inlier_data.shape[0]} 不足以细化模型")

        initial = self._parameters(model)
        parameters, jacobian, improved = self._optimize(
            lambda p: self._objective(inlier_data, p), initial)
        if improved:
            model = self._model(parameters)
        if self.keep_covariance:
            self.covariance = self._covariance(jacobian)
        return model, improved

    def _objective(self, data, parameters):
        residuals = self._residuals(data, parameters)
        if self.homogeneous:
            residuals = np.r_[residuals, self.GAUGE_WEIGHT * (np.linalg.norm(parameters) - 1.0)]
        return residuals

    def _optimize(self, function, initial):
        """ 运行最小二乘，返回参数、该参数处的雅可比矩阵和代价是否减小 """
        initial = np.asarray(initial, dtype=np.float64)
        if self.homogeneous:
            initial = initial / np.linalg.norm(initial)
        initial_residuals = function(initial)
        if not np.all(np.isfinite(initial_residuals)):
            raise RefinerError("初始模型的残差无法计算")

        # lm 需要残差数目不少于参数数目
        method = 'lm' if initial_residuals.shape[0] >= initial.shape[0] else 'trf'
        if self.fast:
            options = dict(xtol=self.FAST_TOLERANCE, ftol=self.FAST_TOLERANCE,
                           max_nfev=self.FAST_MAX_FUNCTION_EVALUATIONS)
        else:
            options = dict(xtol=self.TOLERANCE, ftol=self.TOLERANCE)
        try:
            result = least_squares(function, initial, method=method, **options)
        except (ValueError, np.linalg.LinAlgError) as e:
            raise RefinerError(str(e)) from e

        if not np.all(np.isfinite(result.x)) or not np.all(np.isfinite(result.jac)):
            raise RefinerError("细化结果不是有限值")

        initial_cost = 0.5 * float(np.sum(initial_residuals ** 2))
        improved = result.cost < initial_cost
        logger.debug("refinement cost %g -> %g (%d evaluations)", initial_cost, result.cost, result.nfev)
        if not improved:
            # 保留初始参数，雅可比矩阵也在初始参数处计算
            return initial, np.atleast_2d(approx_fprime(initial, function)), False
        return result.x, np.asarray(result.jac), True

    def _covariance(self, jacobian):
        """ 协方差 (J^T J)^+ * sigma^2 """
        jacobian = np.asarray(jacobian, dtype=np.float64)
        return np.linalg.pinv(jacobian.T @ jacobian) * self.standard_deviation ** 2

    def _parameters(self, model):
        raise NotImplementedError

    def _model(self, parameters):
        raise NotImplementedError

    def _residuals(self, data, parameters):
        raise NotImplementedError
