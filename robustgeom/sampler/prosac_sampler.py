import math as m

import numpy as np

from ..utils.uniform_random_generator import UniformRandomGenerator
from .sampler import Sampler


class ProsacSampler(Sampler):
    """ PROSAC 渐进采样器（PROSAC / PROMedS）

    数据点按质量得分降序排列，采样先集中在高质量的点上，
    随迭代次数增加逐步扩大采样子集，最终退化为全局均匀采样。
    """

    # PROSAC 论文中的 T_N，超过该采样次数后与 RANSAC 相同
    DEFAULT_RANSAC_CONVERGENCE_ITERATIONS = 200000

    def __init__(self, container, sample_size, quality_scores,
                 ransac_convergence_iterations=DEFAULT_RANSAC_CONVERGENCE_ITERATIONS,
                 random_generator=None):
        """ 初始化 PORSAC 采样器

        参数
        ----------
        container : numpy
            采样的数据点集
        sample_size : int
            采样的样本数
        quality_scores : numpy
            每个数据点的质量得分，与数据点一一对应
        ransac_convergence_iterations : int 可选
            prosac 完全退化为均匀采样的采样次数
        random_generator : None, int or numpy.random.Generator 可选
            随机数源
        """
        super().__init__(container)
        self.random_generator = UniformRandomGenerator(random_generator)

        self.sample_size = sample_size
        self.point_number = np.shape(container)[0]
        self.ransac_convergence_iterations = ransac_convergence_iterations
        self.kth_sample_number = 1      # prosac 采样迭代次数
        self.subset_size = 0            # 当前采样池的点集大小
        self.largest_sample_size = 0    # 最大样本数目
        self.growth_function = []       # PROSAC 增长函数
        self.sorted_indices = None      # 按质量降序排列的点序号

        self.initialized = self.initialize(quality_scores)

    def initialize(self, quality_scores):
        """ PROSAC 采样初始化 growth_function """
        quality_scores = np.asarray(quality_scores, dtype=np.float64)
        if quality_scores.shape[0] != self.point_number or self.point_number < self.sample_size:
            return False
        # 稳定排序保证相同质量的点保持原有顺序
        self.sorted_indices = np.argsort(-quality_scores, kind='stable')
        self.growth_function = [0 for i in range(self.point_number)]

        # The data points in U_N are sorted in descending order w.r.t. the quality function
        # Let T_n be an average number of samples from {Mi}i=1...T_N that contain data points from U_n only.
        # compute initial value for T_n
        #                                  n - i
        # T_n = T_N * Product i = 0...m-1 -------, n >= sample size, N = points size
        #                                  N - i
        T_n = self.ransac_convergence_iterations
        for i in range(self.sample_size):
            T_n *= (self.sample_size - i) / (self.point_number - i)

        T_n_prime = 1
        # compute values using recurrent relation
        #             n + 1
        # T(n+1) = --------- T(n), m is sample size.
        #           n + 1 - m
        # growth function is defined as
        # g(t) = min {n, T'_(n) >= t}
        # T'_(n+1) = T'_(n) + (T_(n+1) - T_(n))
        for i in range(self.point_number):
            if i + 1 <= self.sample_size:
                self.growth_function[i] = T_n_prime
                continue
            Tn_plus1 = float(i + 1) * T_n / (i + 1 - self.sample_size)
            self.growth_function[i] = T_n_prime + m.ceil(Tn_plus1 - T_n)
            T_n = Tn_plus1
            T_n_prime = self.growth_function[i]

        self.largest_sample_size = self.sample_size
        self.subset_size = self.sample_size

        # 最后一个点总会被选中，随机部分只从 [0, subset_size-2] 中产生
        self.random_generator.resetGenerator(0, self.subset_size - 2)
        return True

    def sample(self, pool, sample_size):
        """ 根据给定的采样池和样本大小进行采样

        参数
        ----------
        pool : list(int)
            采样的数据集合的序号池（PROSAC 始终使用全部数据点）
        sample_size : int
            采样的样本数

        返回
        ----------
        list
            采样的数据集合序号列表
        """
        if not self.initialized or sample_size != self.sample_size:
            self.__incrementIterationNumber()
            return []

        # 如果 PROSAC 采样与 RANSAC 相同，则采样均匀随机采样
        if self.kth_sample_number > self.ransac_convergence_iterations:
            subset = self.random_generator.generateUniqueRandomSet(sample_size)
        else:
            # 产生 PROSAC 样本 [0, subset_size-2]
            subset = self.random_generator.generateUniqueRandomSet(self.sample_size - 1)
            # 最后一个索引是当前使用的子集末尾的点的索引
            subset.append(self.subset_size - 1)
        self.__incrementIterationNumber()
        return [int(self.sorted_indices[i]) for i in subset]

    def setSampleNumber(self, k):
        """ 外部设置目前采样次数为第 k 次 PROSAC 采样"""
        self.kth_sample_number = k

        # 如果与 RANSAC 完全相同，则设置随机生成器以从所有可能的索引生成值
        if self.kth_sample_number > self.ransac_convergence_iterations:
            self.random_generator.resetGenerator(0, self.point_number - 1)
            return
        # 根据需要增加采样池的大小
        while self.subset_size < self.point_number and \
                self.kth_sample_number > self.growth_function[self.subset_size - 1]:
            self.__growSubset()

    def __incrementIterationNumber(self):
        self.kth_sample_number += 1

        # 如果与 RANSAC 完全相同，则设置随机生成器以从所有可能的索引生成值
        if self.kth_sample_number > self.ransac_convergence_iterations:
            self.random_generator.resetGenerator(0, self.point_number - 1)
        # 根据需要增加采样池的大小
        elif self.subset_size < self.point_number and \
                self.kth_sample_number > self.growth_function[self.subset_size - 1]:
            self.__growSubset()

    def __growSubset(self):
        self.subset_size += 1  # n = n + 1
        if self.largest_sample_size < self.subset_size:
            self.largest_sample_size = self.subset_size
        # 重置随机生成器以从当前点子集生成值，但最后一个除外，因为它将始终被使用
        self.random_generator.resetGenerator(0, self.subset_size - 2)
