"""基础设施：日志、URL 处理"""
