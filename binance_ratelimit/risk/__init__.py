"""
限流风控组件：操作权重、限流规则、滑动窗口
"""
