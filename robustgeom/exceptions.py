class RobustGeomError(Exception):
    """ robustgeom 异常基类 """


class LockedError(RobustGeomError):
    """ 估计器正在运行时被修改或重复调用 """

    def __init__(self, message="估计器已锁定，无法在估计过程中修改"):
        super().__init__(message)


class NotReadyError(RobustGeomError):
    """ 数据缺失或尺寸不一致，估计器尚未准备好 """

    def __init__(self, message="估计器尚未准备好，请检查输入数据"):
        super().__init__(message)


class RobustEstimatorError(RobustGeomError):
    """ 迭代次数耗尽仍未找到有效的候选模型 """

    def __init__(self, message="鲁棒估计失败，对外点的鲁棒性不足"):
        super().__init__(message)


class RefinerError(RobustGeomError):
    """ 模型细化失败（由估计器内部处理，不向外抛出）"""
