"""领域层模型与异常。

包含：
- models: Project / ProfileData / ChatMessage / ChatSession 等数据模型。
- profile: 随包分发的静态个人资料加载。
- exceptions: 业务异常类型定义。
"""
