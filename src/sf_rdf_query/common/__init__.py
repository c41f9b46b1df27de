"""配置、日志、异常与指标等通用基础设施。"""
