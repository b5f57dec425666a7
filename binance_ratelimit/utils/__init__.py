"""
工具：配置加载、取整
"""
