import math as m

import numpy as np


class Estimator:
    """ 模型估计器基类

    连接最小样本求解器与鲁棒估计迭代过程：给出最小样本大小，
    由样本计算候选模型，并计算每个对应关系相对模型的残差。
    """

    def __init__(self, minimalSolver, nonMinimalSolver=None):
        # 用于估计最小样本模型的求解器
        self.minimal_solver = minimalSolver()
        # 用于估计非最小样本模型的求解器
        self.non_minimal_solver = (nonMinimalSolver or minimalSolver)()

    def sampleSize(self):
        """ 估计模型所需的最小样本的大小 """
        return self.minimal_solver.sampleSize()

    def nonMinimalSampleSize(self):
        """ 估计模型所需的非最小样本的大小 """
        return self.non_minimal_solver.sampleSize()

    def estimateModel(self, data, sample):
        """ 给定一组数据点，估计最小样本模型

        参数
        ----------
        data : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表

        返回
        ----------
        list(Model)
            通过样本估计的模型列表，样本退化时为空
        """
        return self.minimal_solver.estimateModel(data, sample, self.sampleSize())

    def estimateModelNonminimal(self, data, sample, sample_number, weights=None):
        """ 根据数据点集的非最小采样估计模型

        参数
        ----------
        data : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表
        sample_number : int
            样本点数目
        weights : list
            数据点集中点的对应权重

        返回
        ----------
        list(Model)
            通过样本估计的模型列表
        """
        if sample_number < self.nonMinimalSampleSize():
            return []
        return self.non_minimal_solver.estimateModel(data, sample, sample_number, weights=weights)

    def residual(self, point, model):
        """ 给定模型和数据点，计算误差 """
        return m.sqrt(self.squaredResidual(point, model))

    def squaredResidual(self, point, model):
        """ 给定模型和数据点，计算误差的平方 """
        return float(self.residuals(np.atleast_2d(point), model)[0]) ** 2

    def residuals(self, data, model):
        """ 计算全部数据点相对模型的误差

        返回
        ----------
        numpy
            (N,) 非负误差，无法计算的误差记为 inf
        """
        errors = self._computeResiduals(np.atleast_2d(data), model)
        errors = np.abs(np.asarray(errors, dtype=np.float64))
        errors[~np.isfinite(errors)] = np.inf
        return errors

    def _computeResiduals(self, data, model):
        raise NotImplementedError

    def isValidSample(self, data, sample):
        """ 在计算模型参数之前判断所选样本是否退化

        参数
        ----------
        data : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表

        返回
        ----------
        bool
            样本是否有效
        """
        return len(set(int(i) for i in sample)) == len(sample)

    def isValidModel(self,
                     model,
                     data=None,
                     inliers=None,
                     minimal_sample=None,
                     threshold=None):
        """ 检查模型是否有效，可以是模型结构的几何检查或其他验证

        参数
        ----------
        model : Model
            需要检查的模型
        data : numpy
            输入的数据点集
        inliers : numpy
            需要检查的模型的内点掩码
        minimal_sample : list
            生成模型的最小样本
        threshold : float
            决定内点和外点的阈值

        返回
        ----------
        bool
            模型是否有效
        """
        return model.descriptor is not None and bool(np.all(np.isfinite(model.descriptor)))
