"""领域层模型与协议。

包含：
- models: Message / UpstreamRequest / ExchangeResult 等数据模型。
- conversation: ConversationStore 抽象。
- exceptions: 业务异常类型定义。
"""
