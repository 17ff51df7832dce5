"""
Douyin Gateway MCP Server
让其他 AI 助手可以调用抖音分享链接解析功能

启动方式:
    python mcp_server.py

配置到其他 AI 助手时，需要使用 MCP 客户端运行
"""
import json
import sys
from pathlib import Path
from typing import List, Optional

# 添加项目路径
sys.path.insert(0, str(Path(__file__).parent))

from gateway.config import settings
from gateway.services.parse_service import ParseService


class GatewayMCP:
    """Gateway MCP 服务器核心类"""

    def __init__(self, service: Optional[ParseService] = None):
        self.service = service or ParseService()

    def list_tools(self) -> List[dict]:
        """列出可用工具"""
        return [
            {
                "name": "parse_video_link",
                "description": "解析抖音分享链接 - 输入分享链接（支持 v.douyin.com 短链接），返回无水印视频、封面、音乐等信息。",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "url": {
                            "type": "string",
                            "description": "抖音分享链接，如 https://v.douyin.com/xxxx/"
                        }
                    },
                    "required": ["url"]
                }
            },
            {
                "name": "parse_video_batch",
                "description": f"批量解析抖音分享链接，自动去重，最多 {settings.batch_max_urls} 条。",
                "inputSchema": {
                    "type": "object",
                    "properties": {
                        "urls": {
                            "type": "array",
                            "items": {"type": "string"},
                            "description": "分享链接列表"
                        }
                    },
                    "required": ["urls"]
                }
            },
        ]

    def parse_link(self, url: Optional[str]) -> dict:
        """解析单条链接"""
        if not url or not isinstance(url, str) or not url.strip():
            return {"code": 400, "msg": "missing url parameter", "data": None}

        print(f"[MCP] 解析: {url}", file=sys.stderr)
        item = self.service.parse_link(url)
        return item.to_dict()

    def parse_batch(self, urls) -> dict:
        """批量解析"""
        print(f"[MCP] 批量解析: {len(urls) if isinstance(urls, list) else 0} 条", file=sys.stderr)
        return self.service.parse_batch(urls).to_dict()


_server: Optional[GatewayMCP] = None


def _get_server() -> GatewayMCP:
    global _server
    if _server is None:
        _server = GatewayMCP()
    return _server


# MCP 协议处理
def _error(request_id, code: int, message: str) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def handle_jsonrpc(request: dict, server: Optional[GatewayMCP] = None) -> dict:
    """处理 JSON-RPC 请求"""
    method = request.get("method")
    request_id = request.get("id")

    if method == "tools/list":
        gateway = server or _get_server()
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": {"tools": gateway.list_tools()}
        }
    elif method == "tools/call":
        params = request.get("params") or {}
        if not isinstance(params, dict):
            return _error(request_id, -32602, "Invalid params: params must be an object")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            return _error(request_id, -32602, "Invalid params: arguments must be an object")

        gateway = server or _get_server()
        tool_name = params.get("name")

        if tool_name == "parse_video_link":
            result = gateway.parse_link(arguments.get("url"))
        elif tool_name == "parse_video_batch":
            result = gateway.parse_batch(arguments.get("urls"))
        else:
            result = {"error": f"Unknown tool: {tool_name}"}

        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": {
                "content": [
                    {"type": "text", "text": json.dumps(result, ensure_ascii=False)}
                ]
            }
        }
    elif method == "initialize":
        return {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": {
                "protocolVersion": "2024-11-05",
                "capabilities": {},
                "serverInfo": {"name": "douyin-gateway", "version": "0.1.0"}
            }
        }
    else:
        return _error(request_id, -32601, f"Method not found: {method}")


def main():
    """MCP 服务器主循环"""
    print("Douyin Gateway MCP Server 启动中...", file=sys.stderr)
    print(f"上游: {settings.upstream_api_url}", file=sys.stderr)

    while True:
        line = sys.stdin.readline()
        if not line:
            break
        if not line.strip():
            continue

        try:
            request = json.loads(line)
        except json.JSONDecodeError as e:
            print(f"Error: {e}", file=sys.stderr)
            response = _error(None, -32700, "Parse error")
        else:
            if not isinstance(request, dict):
                response = _error(None, -32600, "Invalid Request")
            else:
                try:
                    response = handle_jsonrpc(request)
                except Exception as e:
                    print(f"Error: {e}", file=sys.stderr)
                    response = _error(request.get("id"), -32603, f"Internal error: {e}")

        print(json.dumps(response, ensure_ascii=False), flush=True)


if __name__ == "__main__":
    main()
