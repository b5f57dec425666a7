"""
客户端连接器：限流包装器与模拟交易所
"""
