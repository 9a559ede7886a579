import logging
import math as m
import sys

import numpy as np

from ..exceptions import NotReadyError, RobustEstimatorError
from ..utils.score import RansacScoringFunction

logger = logging.getLogger(__name__)


class _Settings:

    def __init__(self):
        self.max_iteration_number = 5000                 # 全局最大迭代次数
        self.confidence = 0.99                           # 结果的置信率
        self.threshold = 1e-3                            # 决定内点和外点的阈值（中位数方法为停止阈值）
        self.progress_delta = 0.05                       # 进度通知的最小变化量
        self.inlier_factor = 1.5                         # 中位数方法估计内点阈值的倍数


class _Statistics:

    def __init__(self):
        self.iteration_number = 0                        # 已执行的迭代次数
        self.model_number = 0                            # 评估过的有效候选模型数目
        self.best_iteration = 0                          # 最佳模型出现的迭代


class InliersData:
    """ 最佳模型的内点数据快照 """

    def __init__(self, inliers, residuals, inlier_number, estimated_threshold=None):
        self.inliers = inliers                           # (N,) bool 内点掩码
        self.residuals = residuals                       # (N,) 每个数据点相对模型的残差
        self.inlier_number = inlier_number               # 内点数目
        self.estimated_threshold = estimated_threshold   # 中位数方法估计的内点阈值

    def __repr__(self):
        return (f"InliersData(inlier_number={self.inlier_number}, "
                f"estimated_threshold={self.estimated_threshold})")


class RobustEstimator:
    """ 通用的采样一致性迭代过程

    评分函数决定 RANSAC / MSAC / LMedS / PROMedS 的评价方式，
    采样器决定均匀采样或 PROSAC 渐进采样。
    """

    # 内点率的截断范围，避免 log(1 - w^k) 的数值问题
    INLIER_RATIO_EPSILON = 1e-12

    def __init__(self, scoring_function=None, listener=None):
        # 设置初始化
        self.settings = _Settings()
        self.statistics = _Statistics()

        # 模型评估的评分函数
        self.scoring_function = scoring_function or RansacScoringFunction()
        # 迭代过程的通知对象
        self.listener = listener

        # 设置一系列参数
        self.estimator = None
        self.main_sampler = None
        self.max_iteration = 0
        self.point_number = 0
        self.sample_number = 0

    def run(self,
            points,
            estimator,
            main_sampler):
        """ 运行鲁棒估计求解过程

        参数
        ----------
        points : numpy
            输入的数据点集，每行一个对应关系
        estimator : Estimator
            模型的估计器
        main_sampler : Sampler
            全局采样器

        返回
        ----------
        Model, InliersData
            求解的最佳模型和对应的内点数据
        """
        # 初始化参数赋值
        self.statistics = _Statistics()
        self.point_number = np.shape(points)[0]
        self.sample_number = estimator.sampleSize()
        self.estimator = estimator
        self.main_sampler = main_sampler

        if self.point_number < self.sample_number or not main_sampler.initialized:
            raise NotReadyError()

        # 中位数评分需要样本大小估计内点阈值
        self.scoring_function.sample_size = self.sample_number
        self.scoring_function.inlier_factor = self.settings.inlier_factor

        self.__notify('onEstimateStart')
        try:
            return self.__iterate(points)
        finally:
            self.__notify('onEstimateEnd')

    def __iterate(self, points):
        settings = self.settings

        # 记录全局的最佳模型，得分，残差
        so_far_the_best_model = None
        so_far_the_best_score = None
        so_far_the_best_residuals = None

        # 初始化采样池
        pool = [i for i in range(self.point_number)]

        # 数据点数目等于样本大小时，所有采样都相同
        if self.point_number == self.sample_number:
            self.max_iteration = 1
        else:
            self.max_iteration = settings.max_iteration_number

        previous_progress = 0.0
        while self.statistics.iteration_number < self.max_iteration:
            # 增加迭代计算次数
            self.statistics.iteration_number += 1

            # Sk ← Draw a minimal sample
            sample = self.main_sampler.sample(pool, self.sample_number)

            # 检查采样是否有效，无效的采样同样消耗一次迭代
            if len(sample) == self.sample_number and self.estimator.isValidSample(points, sample):
                # θk ← Estimate a model using Sk
                for model in self.estimator.estimateModel(points, sample):
                    # 检查模型是否有效，无效则重新评估
                    if not self.estimator.isValidModel(model, data=points, minimal_sample=sample,
                                                       threshold=settings.threshold):
                        continue
                    self.statistics.model_number += 1

                    # wk ← Compute the support of θk
                    score, residuals = self.scoring_function.getScore(points,
                                                                      model,
                                                                      self.estimator,
                                                                      settings.threshold)
                    # if wk > w∗ then
                    # 	θ∗, L∗, w∗ ← θk, Lk, wk
                    if self.scoring_function.isBetter(score, so_far_the_best_score):
                        so_far_the_best_model = model
                        so_far_the_best_score = score
                        so_far_the_best_residuals = residuals
                        self.statistics.best_iteration = self.statistics.iteration_number
                        # 更新最大迭代数，只允许减小
                        self.max_iteration = min(self.max_iteration,
                                                 self.__getIterationNumber(score.support_number))
                        logger.debug("iteration %d: new best model %s, bound %d",
                                     self.statistics.iteration_number, score, self.max_iteration)

            self.__notify('onEstimateNextIteration', self.statistics.iteration_number)

            progress = min(float(self.statistics.iteration_number) / self.max_iteration, 1.0)
            if progress - previous_progress >= settings.progress_delta and progress > previous_progress:
                previous_progress = progress
                self.__notify('onEstimateProgressChange', progress)

            if so_far_the_best_score is not None and \
                    self.scoring_function.isConverged(so_far_the_best_score, settings.threshold):
                logger.debug("converged at iteration %d", self.statistics.iteration_number)
                break

        logger.debug("finished after %d iterations (%d valid models)",
                     self.statistics.iteration_number, self.statistics.model_number)

        if so_far_the_best_model is None:
            raise RobustEstimatorError()

        # 使用最佳模型重新划分内点
        inlier_threshold = self.scoring_function.inlierThreshold(so_far_the_best_residuals,
                                                                 self.sample_number,
                                                                 settings.threshold)
        inliers = so_far_the_best_residuals <= inlier_threshold
        estimated_threshold = inlier_threshold if self.scoring_function.uses_median else None

        # Output: θ - model parameters; L – labeling
        return so_far_the_best_model, InliersData(inliers,
                                                  so_far_the_best_residuals,
                                                  int(np.count_nonzero(inliers)),
                                                  estimated_threshold)

    # H(|L∗|, µ)
    def __getIterationNumber(self, inlier_number):
        """ 计算当前内点数目期望的迭代数目，限制在 [1, 最大迭代次数] """
        max_iteration_number = self.settings.max_iteration_number
        if self.settings.confidence >= 1.0:
            return max_iteration_number
        inlier_ratio = float(inlier_number) / self.point_number  # η
        inlier_ratio = min(max(inlier_ratio, self.INLIER_RATIO_EPSILON), 1.0 - self.INLIER_RATIO_EPSILON)
        probability = inlier_ratio ** self.sample_number
        if probability < sys.float_info.epsilon:
            return max_iteration_number
        log1 = m.log(1.0 - self.settings.confidence)
        log2 = m.log1p(-probability)
        return int(min(max(m.ceil(log1 / log2), 1), max_iteration_number))

    def __notify(self, event, *args):
        if self.listener is not None:
            getattr(self.listener, event)(*args)
