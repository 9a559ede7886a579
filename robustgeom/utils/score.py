import numpy as np


class Score:
    """ 候选模型的评估得分 """

    def __init__(self, value=0.0, inlier_number=0, threshold=None, support_number=None):
        self.value = value                  # 得分
        self.inlier_number = inlier_number  # 内点数目
        self.threshold = threshold          # 判定内点使用的阈值
        # 更新自适应迭代上限使用的支持数目，默认与内点数目相同
        self.support_number = inlier_number if support_number is None else support_number

    def __repr__(self):
        return f"Score(value={self.value}, inlier_number={self.inlier_number}, threshold={self.threshold})"


class RansacScoringFunction:
    """ RANSAC 评分：阈值内的内点数目，越大越好 """

    # 是否通过残差中位数估计阈值
    uses_median = False

    def getScore(self, points, model, estimator, threshold):
        """ 求解模型对应的评估得分

        参数
        ----------
        points : numpy
            输入的数据点集
        model : Model
            当前模型参数
        estimator : Estimator
            模型的估计器
        threshold : float
            决定内点和外点的阈值

        返回
        ----------
        Score, numpy
            当前模型参数的评估得分，当前模型的残差
        """
        residuals = estimator.residuals(points, model)
        inlier_number = int(np.count_nonzero(residuals <= threshold))
        return Score(float(inlier_number), inlier_number, threshold), residuals

    def isBetter(self, score, best_score):
        """ score 是否优于 best_score """
        return best_score is None or score.value > best_score.value

    def isConverged(self, score, threshold):
        """ 是否可以提前终止迭代 """
        return False

    def inlierThreshold(self, residuals, sample_size, threshold):
        """ 最终划分内点使用的阈值 """
        return threshold


class MSACScoringFunction(RansacScoringFunction):
    """ MSAC 评分：截断二次代价 sum(min(r^2, t^2))，越小越好 """

    def getScore(self, points, model, estimator, threshold):
        residuals = estimator.residuals(points, model)
        squared_threshold = threshold ** 2
        cost = float(np.sum(np.minimum(residuals ** 2, squared_threshold)))
        inlier_number = int(np.count_nonzero(residuals <= threshold))
        return Score(cost, inlier_number, threshold), residuals

    def isBetter(self, score, best_score):
        return best_score is None or score.value < best_score.value


class LMedSScoringFunction(RansacScoringFunction):
    """ LMedS 评分：残差平方的中位数，越小越好

    阈值只作为停止阈值；内点阈值由中位数估计的鲁棒标准差得到。
    """

    uses_median = True

    # 鲁棒标准差估计中 1.4826 为正态分布的一致性常数
    MEDIAN_TO_STANDARD_DEVIATION = 1.4826
    DEFAULT_INLIER_FACTOR = 1.5

    def __init__(self, inlier_factor=DEFAULT_INLIER_FACTOR):
        self.inlier_factor = inlier_factor
        self.sample_size = 0

    def getScore(self, points, model, estimator, threshold):
        residuals = estimator.residuals(points, model)
        median = float(np.median(residuals ** 2))
        estimated_threshold = self.inlierThreshold(residuals, self.sample_size, threshold, median=median)
        inlier_number = int(np.count_nonzero(residuals <= estimated_threshold))
        # 估计阈值随候选模型变差而变大，迭代上限只由停止阈值内的点数决定
        support_number = int(np.count_nonzero(residuals <= threshold))
        return Score(median, inlier_number, estimated_threshold, support_number), residuals

    def isBetter(self, score, best_score):
        return best_score is None or score.value < best_score.value

    def isConverged(self, score, threshold):
        """ 最佳中位残差低于停止阈值时终止 """
        return np.sqrt(score.value) <= threshold

    def inlierThreshold(self, residuals, sample_size, threshold, median=None):
        """ 由残差中位数估计内点阈值，下限为停止阈值 """
        if median is None:
            median = float(np.median(residuals ** 2))
        point_number = residuals.shape[0]
        correction = 1.0 + 5.0 / max(point_number - sample_size, 1)
        standard_deviation = self.MEDIAN_TO_STANDARD_DEVIATION * correction * np.sqrt(median)
        if not np.isfinite(standard_deviation):
            return threshold
        return max(self.inlier_factor * standard_deviation, threshold)


class PROMedSScoringFunction(LMedSScoringFunction):
    """ PROMedS 评分：与 LMedS 相同的中位数评分，配合 PROSAC 渐进采样使用 """
