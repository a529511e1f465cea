import asyncio

from mcp.client.stdio import stdio_client, StdioServerParameters, SessionMessage
from mcp.types import JSONRPCMessage


async def send(write_stream, msg: JSONRPCMessage):
    await write_stream.send(SessionMessage(msg))


async def recv(read_stream):
    sm = await read_stream.receive()
    if isinstance(sm, Exception):
        raise sm
    return sm.message.model_dump()


async def main():
    server = StdioServerParameters(
        command="python",
        args=["server.py"],
    )

    async with stdio_client(server) as (read_stream, write_stream):

        await send(
            write_stream,
            JSONRPCMessage(
                jsonrpc="2.0",
                id=1,
                method="initialize",
                params={
                    "protocolVersion": "2025-11-25",
                    "capabilities": {},
                    "clientInfo": {
                        "name": "uninject-smoke-test",
                        "version": "0.1",
                    },
                },
            ),
        )

        init_resp = await recv(read_stream)
        assert "result" in init_resp, init_resp

        await send(
            write_stream,
            JSONRPCMessage(
                jsonrpc="2.0",
                method="notifications/initialized",
                params={},
            ),
        )

        await send(
            write_stream,
            JSONRPCMessage(
                jsonrpc="2.0",
                id=2,
                method="tools/list",
            ),
        )

        tools_resp = await recv(read_stream)
        tool_names = [t["name"] for t in tools_resp["result"]["tools"]]
        assert tool_names == ["k8s_uninject"], tool_names

        # configmaps carry no pod template and are forbidden outright
        await send(
            write_stream,
            JSONRPCMessage(
                jsonrpc="2.0",
                id=3,
                method="tools/call",
                params={
                    "name": "k8s_uninject",
                    "arguments": {
                        "namespace": "default",
                        "group": "",
                        "version": "v1",
                        "plural": "configmaps",
                        "name": "does-not-matter",
                    },
                },
            ),
        )

        resp = await recv(read_stream)
        text = resp["result"]["content"][0]["text"]
        assert text.startswith("BLOCKED"), resp

        print("uninject smoke test passed")


if __name__ == "__main__":
    asyncio.run(main())
