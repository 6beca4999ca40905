"""Elasticsearch bulk 输出使用示例.

本文件展示了如何使用 ElasticsearchOutput 把事件批量写入 Elasticsearch，
以及如何处理可重试和被丢弃的记录。
"""

import logging
import time

from elasticsink import (
    ClusterConfig,
    ConnectionConfig,
    ElasticsearchOutput,
    Event,
    MemoryEventRouter,
    OutputConfig,
    WriteOperation,
)

logging.basicConfig(level=logging.INFO)

cluster = ClusterConfig(hosts=["http://localhost:9200"])
connection = ConnectionConfig(request_timeout=10)


# ==================== 示例1：logstash 风格按日期索引 ====================
def example_logstash_index():
    """按事件时间写入 logstash-YYYY.MM.DD 索引."""
    config = OutputConfig(
        logstash_format=True,
        logstash_prefix="app",
        include_tag_key=True,
        time_precision=3,
    )
    output = ElasticsearchOutput.from_config(config, cluster, connection)

    now = time.time()
    events = [
        Event("app.access", now, {"path": "/", "status": 200}),
        Event("app.access", now, {"path": "/login", "status": 302}),
    ]
    result = output.write(events)

    print("写入结果:")
    print(f"  总数: {result.total}")
    print(f"  成功: {result.accepted}")
    print(f"  重试: {result.retried}")
    print(f"  丢弃: {result.dropped}")
    print(f"  耗时: {result.took:.2f}秒")

    output.close()
    return result


# ==================== 示例2：UPSERT 与重试标签 ====================
def example_upsert_with_retry():
    """按 request_id upsert，失败记录以 retry_es 标签重新发射."""
    config = OutputConfig.from_dict(
        {
            "write_operation": "upsert",
            "id_key": "request_id",
            "remove_keys_on_update": "first_seen",
            "retry_tag": "retry_es",
            "emit_error_for_missing_id": "true",
        }
    )
    router = MemoryEventRouter()
    output = ElasticsearchOutput.from_config(config, cluster, connection, router)

    now = time.time()
    events = [
        Event("app.session", now, {"request_id": "r-1", "hits": 3, "first_seen": now}),
        Event("app.session", now, {"hits": 1}),  # 缺少 request_id
    ]
    result = output.write(events)

    for disposition in result.dispositions:
        print(f"  {disposition.tag}: {disposition.disposition.value} ({disposition.reason.value})")

    if result.errors:
        print(f"  错误摘要:\n{result.get_error_summary()}")

    # 重新发射的记录由宿主管道以 retry_es 标签再次投递
    for event in router.events:
        print(f"  待重试: tag={event.tag}, record={event.record}")
    for error_event in router.error_events:
        print(f"  错误事件: tag={error_event.tag}, error={error_event.error}")

    output.close()
    return result


# ==================== 示例3：从记录中读取目标索引 ====================
def example_target_index_key():
    """每条记录通过 target_index 字段指定自己的索引."""
    config = OutputConfig(
        write_operation=WriteOperation.INDEX,
        target_index_key="target_index",
        index_name="fallback",
        flatten_hashes=True,
    )
    output = ElasticsearchOutput.from_config(config, cluster, connection)

    events = [
        Event("svc", time.time(), {"target_index": "Orders", "order": {"id": 1, "total": 9.5}}),
        Event("svc", time.time(), {"order": {"id": 2, "total": 3.0}}),
    ]
    result = output.write(events)
    print(f"  成功: {result.accepted}/{result.total}")

    output.close()
    return result


# ==================== 主函数 ====================
def main():
    """运行所有示例."""
    print("=" * 50)
    print("bulk 输出示例")
    print("=" * 50)

    print("\n1. logstash 风格索引示例")
    print("-" * 50)
    example_logstash_index()

    print("\n2. UPSERT 与重试标签示例")
    print("-" * 50)
    example_upsert_with_retry()

    print("\n3. 记录指定目标索引示例")
    print("-" * 50)
    example_target_index_key()

    print("\n" + "=" * 50)
    print("所有示例运行完成！")
    print("=" * 50)


if __name__ == "__main__":
    main()
