import logging

import numpy as np

from ..exceptions import LockedError, NotReadyError, RefinerError
from ..ransac.ransac import InliersData, RobustEstimator
from ..sampler import ProsacSampler, UniformSampler
from ..utils.score import (LMedSScoringFunction, MSACScoringFunction,
                           PROMedSScoringFunction, RansacScoringFunction)
from ..utils.uniform_random_generator import asGenerator
from .listener import _ListenerBridge
from .robust_estimator_method import RobustEstimatorMethod

logger = logging.getLogger(__name__)

# 每种方法对应的评分函数
_SCORING_FUNCTIONS = {
    RobustEstimatorMethod.RANSAC: RansacScoringFunction,
    RobustEstimatorMethod.MSAC: MSACScoringFunction,
    RobustEstimatorMethod.LMEDS: LMedSScoringFunction,
    RobustEstimatorMethod.PROSAC: RansacScoringFunction,
    RobustEstimatorMethod.PROMEDS: PROMedSScoringFunction,
}


class BaseRobustEstimator:
    """ 鲁棒估计器基类

    持有配置和数据，估计时将问题相关的估计器、采样器和评分函数组合到
    通用的迭代过程中，然后用全部内点细化最佳模型。估计过程中估计器被锁定，
    任何修改都会抛出 LockedError。
    """

    DEFAULT_METHOD = RobustEstimatorMethod.PROMEDS

    # 由子类给出的最少对应关系数目和默认阈值
    MINIMUM_SIZE = 1
    DEFAULT_THRESHOLD = 1e-3
    DEFAULT_STOP_THRESHOLD = 1e-3

    DEFAULT_PROGRESS_DELTA = 0.05
    MIN_PROGRESS_DELTA = 0.0
    MAX_PROGRESS_DELTA = 1.0

    DEFAULT_CONFIDENCE = 0.99
    MIN_CONFIDENCE = 0.0
    MAX_CONFIDENCE = 1.0

    DEFAULT_MAX_ITERATIONS = 5000
    MIN_ITERATIONS = 1

    DEFAULT_REFINE_RESULT = True
    DEFAULT_KEEP_COVARIANCE = False
    DEFAULT_USE_FAST_REFINEMENT = False
    DEFAULT_COMPUTE_AND_KEEP_INLIERS = False
    DEFAULT_COMPUTE_AND_KEEP_RESIDUALS = False

    def __init__(self, method=None, listener=None, quality_scores=None, random_generator=None):
        """ 初始化鲁棒估计器

        参数
        ----------
        method : RobustEstimatorMethod 可选
            鲁棒估计方法，默认 PROMEDS
        listener : RobustEstimatorListener 可选
            估计过程的通知对象
        quality_scores : numpy 可选
            每个对应关系的质量得分，PROSAC / PROMEDS 需要
        random_generator : None, int or numpy.random.Generator 可选
            随机数源，默认使用进程级发生器
        """
        self._method = self.DEFAULT_METHOD if method is None else RobustEstimatorMethod(method)
        self._threshold = self.DEFAULT_STOP_THRESHOLD if self._method.usesMedian else self.DEFAULT_THRESHOLD
        self._confidence = self.DEFAULT_CONFIDENCE
        self._max_iterations = self.DEFAULT_MAX_ITERATIONS
        self._progress_delta = self.DEFAULT_PROGRESS_DELTA
        self._refine_result = self.DEFAULT_REFINE_RESULT
        self._keep_covariance = self.DEFAULT_KEEP_COVARIANCE
        self._use_fast_refinement = self.DEFAULT_USE_FAST_REFINEMENT
        self._compute_and_keep_inliers = self.DEFAULT_COMPUTE_AND_KEEP_INLIERS
        self._compute_and_keep_residuals = self.DEFAULT_COMPUTE_AND_KEEP_RESIDUALS
        self._listener = None
        self._quality_scores = None
        self._random_generator = asGenerator(random_generator)

        # 最近一次估计的结果
        self._inliers_data = None
        self._covariance = None
        self._statistics = None
        self._locked = False

        if listener is not None:
            self.setListener(listener)
        if quality_scores is not None:
            self.setQualityScores(quality_scores)

    @classmethod
    def create(cls, method=DEFAULT_METHOD, **kwargs):
        """ 按方法创建估计器 """
        return cls(method=method, **kwargs)

    def getMethod(self):
        return self._method

    def isLocked(self):
        return self._locked

    def _checkLocked(self):
        if self._locked:
            raise LockedError()

    def getThreshold(self):
        """ RANSAC / MSAC / PROSAC 的内点阈值，LMedS / PROMedS 的停止阈值 """
        return self._threshold

    def setThreshold(self, threshold):
        self._checkLocked()
        if not threshold > 0.0:
            raise ValueError(f"阈值必须大于 0，输入为 {threshold}")
        self._threshold = float(threshold)

    def getConfidence(self):
        return self._confidence

    def setConfidence(self, confidence):
        self._checkLocked()
        if not self.MIN_CONFIDENCE <= confidence <= self.MAX_CONFIDENCE:
            raise ValueError(f"置信率必须在 [0, 1] 内，输入为 {confidence}")
        self._confidence = float(confidence)

    def getMaxIterations(self):
        return self._max_iterations

    def setMaxIterations(self, max_iterations):
        self._checkLocked()
        if isinstance(max_iterations, bool) or not float(max_iterations).is_integer():
            raise ValueError(f"最大迭代次数必须是整数，输入为 {max_iterations}")
        if max_iterations < self.MIN_ITERATIONS:
            raise ValueError(f"最大迭代次数至少为 {self.MIN_ITERATIONS}，输入为 {max_iterations}")
        self._max_iterations = int(max_iterations)

    def getProgressDelta(self):
        return self._progress_delta

    def setProgressDelta(self, progress_delta):
        self._checkLocked()
        if not self.MIN_PROGRESS_DELTA <= progress_delta <= self.MAX_PROGRESS_DELTA:
            raise ValueError(f"进度变化量必须在 [0, 1] 内，输入为 {progress_delta}")
        self._progress_delta = float(progress_delta)

    def isResultRefined(self):
        return self._refine_result

    def setResultRefined(self, refine_result):
        self._checkLocked()
        self._refine_result = bool(refine_result)

    def isCovarianceKept(self):
        return self._keep_covariance

    def setCovarianceKept(self, keep_covariance):
        self._checkLocked()
        self._keep_covariance = bool(keep_covariance)

    def isFastRefinementUsed(self):
        return self._use_fast_refinement

    def setFastRefinementUsed(self, use_fast_refinement):
        self._checkLocked()
        self._use_fast_refinement = bool(use_fast_refinement)

    def isComputeAndKeepInliersEnabled(self):
        return self._compute_and_keep_inliers

    def setComputeAndKeepInliersEnabled(self, compute_and_keep_inliers):
        self._checkLocked()
        self._compute_and_keep_inliers = bool(compute_and_keep_inliers)

    def isComputeAndKeepResidualsEnabled(self):
        return self._compute_and_keep_residuals

    def setComputeAndKeepResidualsEnabled(self, compute_and_keep_residuals):
        self._checkLocked()
        self._compute_and_keep_residuals = bool(compute_and_keep_residuals)

    def getListener(self):
        return self._listener

    def isListenerAvailable(self):
        return self._listener is not None

    def setListener(self, listener):
        self._checkLocked()
        self._listener = listener

    def getQualityScores(self):
        return self._quality_scores

    def setQualityScores(self, quality_scores):
        """ 设置质量得分，只有 PROSAC / PROMEDS 使用 """
        self._checkLocked()
        if quality_scores is None:
            self._quality_scores = None
            return
        quality_scores = np.array(quality_scores, dtype=np.float64).ravel()
        if quality_scores.shape[0] < self.MINIMUM_SIZE:
            raise ValueError(f"质量得分至少需要 {self.MINIMUM_SIZE} 个，输入为 {quality_scores.shape[0]}")
        if not np.all(np.isfinite(quality_scores)) or np.any(quality_scores < 0.0):
            raise ValueError("质量得分必须是非负的有限值")
        self._quality_scores = quality_scores

    def getRandomGenerator(self):
        return self._random_generator

    def setRandomGenerator(self, random_generator):
        self._checkLocked()
        self._random_generator = asGenerator(random_generator)

    def isReady(self):
        """ 数据是否足以开始估计 """
        number = self._correspondenceNumber()
        if number is None or number < self.MINIMUM_SIZE:
            return False
        if self._method.requiresQualityScores:
            return self._quality_scores is not None and self._quality_scores.shape[0] == number
        return True

    def getInliersData(self):
        """ 最近一次估计的内点数据，估计前为 None """
        return self._inliers_data

    def getCovariance(self):
        """ 最近一次细化的协方差，未细化或未保存时为 None """
        return self._covariance

    def getStatistics(self):
        """ 最近一次估计的迭代统计 """
        return self._statistics

    def estimate(self):
        """ 运行鲁棒估计

        返回
        ----------
        Model
            估计的模型

        异常
        ----------
        LockedError
            估计正在进行
        NotReadyError
            数据不完整或尺寸不一致
        RobustEstimatorError
            迭代结束仍未找到有效的模型
        """
        self._checkLocked()
        if not self.isReady():
            raise NotReadyError()

        self._locked = True
        try:
            data = self._data()
            estimator = self._createEstimator()
            listener = None if self._listener is None else _ListenerBridge(self, self._listener)

            engine = RobustEstimator(_SCORING_FUNCTIONS[self._method](), listener=listener)
            engine.settings.threshold = self._threshold
            engine.settings.confidence = self._confidence
            engine.settings.max_iteration_number = self._max_iterations
            engine.settings.progress_delta = self._progress_delta

            model, inliers_data = engine.run(data, estimator, self._createSampler(data, estimator))

            covariance = None
            if self._refine_result:
                model, covariance = self.__attemptRefine(data, estimator, model, inliers_data)
        finally:
            self._locked = False

        keep_inliers = self._compute_and_keep_inliers or self._refine_result
        keep_residuals = self._compute_and_keep_residuals or self._refine_result
        self._inliers_data = InliersData(inliers_data.inliers if keep_inliers else None,
                                         inliers_data.residuals if keep_residuals else None,
                                         inliers_data.inlier_number,
                                         inliers_data.estimated_threshold)
        self._covariance = covariance
        self._statistics = engine.statistics
        return model

    def _createSampler(self, data, estimator):
        if self._method.requiresQualityScores:
            return ProsacSampler(data,
                                 estimator.sampleSize(),
                                 self._quality_scores,
                                 ransac_convergence_iterations=self._max_iterations,
                                 random_generator=self._random_generator)
        return UniformSampler(data, random_generator=self._random_generator)

    def __attemptRefine(self, data, estimator, model, inliers_data):
        """ 细化失败时返回未细化的模型且不保存协方差 """
        standard_deviation = inliers_data.estimated_threshold or self._threshold
        initial = self.__linearFit(data, estimator, model, inliers_data, standard_deviation)
        refiner = self._createRefiner(standard_deviation)
        try:
            refined, _ = refiner.refine(data, inliers_data.inliers, initial)
        except RefinerError as e:
            logger.warning("refinement failed, keeping unrefined model: %s", e)
            return model, None
        return refined, refiner.covariance if self._keep_covariance else None

    @staticmethod
    def __linearFit(data, estimator, model, inliers_data, threshold):
        """ 用全部内点做加权线性拟合，代价更小时作为细化的初值

        权重为 (1 - r^2 / t^2)^2，内点阈值外的点权重为 0。
        """
        sample = np.flatnonzero(inliers_data.inliers)
        squared_residuals = inliers_data.residuals ** 2
        weights = np.maximum(0.0, 1.0 - squared_residuals / threshold ** 2) ** 2
        best_model = model
        best_cost = float(np.sum(squared_residuals[sample]))
        for candidate in estimator.estimateModelNonminimal(data, sample, sample.shape[0], weights=weights):
            if not estimator.isValidModel(candidate):
                continue
            cost = float(np.sum(estimator.residuals(data[sample], candidate) ** 2))
            if cost < best_cost:
                best_model, best_cost = candidate, cost
        if best_model is not model:
            logger.debug("linear fit over %d inliers lowered the cost to %g", sample.shape[0], best_cost)
        return best_model

    def _correspondenceNumber(self):
        """ 对应关系数目，数据缺失或尺寸不一致时为 None """
        raise NotImplementedError

    def _data(self):
        """ 每行一个对应关系的数据矩阵 """
        raise NotImplementedError

    def _createEstimator(self):
        raise NotImplementedError

    def _createRefiner(self, standard_deviation):
        raise NotImplementedError

    @staticmethod
    def _asRows(values, width, name):
        """ 将输入转换为 (N, width) 数组，形状不符时抛出 ValueError """
        rows = np.array(values, dtype=np.float64)
        if rows.ndim != 2 or rows.shape[1] != width:
            raise ValueError(f"{name} 必须是 (N, {width}) 数组，输入形状为 {rows.shape}")
        return rows
