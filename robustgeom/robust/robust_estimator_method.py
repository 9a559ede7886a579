from enum import Enum


class RobustEstimatorMethod(Enum):
    """ 鲁棒估计方法 """
    RANSAC = 0
    MSAC = 1
    LMEDS = 2
    PROSAC = 3
    PROMEDS = 4

    @property
    def requiresQualityScores(self):
        """ 渐进采样的方法需要质量得分 """
        return self in (RobustEstimatorMethod.PROSAC, RobustEstimatorMethod.PROMEDS)

    @property
    def usesMedian(self):
        """ 中位数方法的阈值为停止阈值 """
        return self in (RobustEstimatorMethod.LMEDS, RobustEstimatorMethod.PROMEDS)
