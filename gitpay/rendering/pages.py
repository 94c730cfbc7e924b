"""
Donation page: a small HTML document that asks a browser wallet to send
a GitPay-tagged token transfer.

The transfer call-data is built here with ``build_transfer_data`` so the
page script only forwards it to the wallet.
"""

import json
from html import escape
from typing import Any, Dict, Optional

from ..processors.classifier import build_transfer_data
from ..processors.stats import parse_units


def _js(value: Any) -> str:
    """JSON literal safe to embed inside a <script> element."""
    return json.dumps(value).replace("</", "<\\/")


def render_donation_page(
    name: str,
    address: str,
    amount: str,
    memo: Optional[str],
    token: Dict[str, Any],
    chain: Dict[str, Any],
) -> str:
    """
    Render the donation page.

    Args:
        name: Display name of the recipient (ENS name or address)
        address: Recipient address
        amount: Amount in display units, e.g. "10" or "2.5"
        memo: Optional memo appended after the GitPay tag
        token: ``{"address", "symbol", "decimals"}`` of the token
        chain: Wallet chain parameters (``ConfigManager.get_wallet_chain_config``)

    Raises:
        ValueError: If the amount or recipient address is invalid
    """
    symbol = token["symbol"]
    base_units = parse_units(amount, token["decimals"])
    call_data = build_transfer_data(address, base_units, memo)

    network_label = chain["chain_name"] + (" - Test tokens only" if chain.get("testnet") else "")
    wallet_chain = {
        "chainId": chain["chain_id_hex"],
        "chainName": chain["chain_name"],
        "rpcUrls": chain["rpc_urls"],
        "nativeCurrency": chain["native_currency"],
        "blockExplorerUrls": [chain["explorer_url"]],
    }
    memo_block = f'\n            <p class="memo">"{escape(memo)}"</p>' if memo else ""

    return f"""<!DOCTYPE html>
<html>
<head>
    <title>Donate to {escape(name)} - {escape(chain["chain_name"])}</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>
        body {{ font-family: Arial, sans-serif; max-width: 600px; margin: 50px auto; padding: 20px; background: #f5f5f5; }}
        .container {{ background: white; padding: 30px; border-radius: 10px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
        .header {{ text-align: center; margin-bottom: 30px; }}
        .amount {{ font-size: 24px; font-weight: bold; color: #3b82f6; }}
        .address {{ font-family: monospace; background: #f0f0f0; padding: 10px; border-radius: 5px; margin: 10px 0; word-break: break-all; }}
        .memo {{ font-style: italic; color: #444; }}
        .button {{ background: #3b82f6; color: white; padding: 15px 30px; border: none; border-radius: 5px; font-size: 16px; cursor: pointer; width: 100%; margin: 10px 0; }}
        .button:hover {{ background: #1d4ed8; }}
        .button:disabled {{ background: #ccc; cursor: not-allowed; }}
        .status {{ margin: 10px 0; padding: 10px; border-radius: 5px; }}
        .success {{ background: #d4edda; color: #155724; border: 1px solid #c3e6cb; }}
        .error {{ background: #f8d7da; color: #721c24; border: 1px solid #f5c6cb; }}
        .info {{ background: #d1ecf1; color: #0c5460; border: 1px solid #bee5eb; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>🎁 Donate {escape(symbol)}</h1>
            <div class="amount">{escape(str(amount))} {escape(symbol)}</div>
            <p>to <strong>{escape(name)}</strong></p>
            <div class="address">{escape(address)}</div>{memo_block}
            <p style="color: #666; font-size: 14px; margin-top: 10px;">
                🌐 <strong>{escape(network_label)}</strong>
            </p>
        </div>

        <div id="status"></div>

        <button id="donateBtn" class="button" onclick="donate()">
            🦊 Connect Wallet &amp; Donate
        </button>

        <p style="text-align: center; color: #666; font-size: 14px;">
            This will open your wallet and send {escape(symbol)} directly
        </p>
    </div>

    <script>
        const TOKEN_CONTRACT = {_js(token["address"])};
        const TRANSFER_DATA = {_js(call_data)};
        const AMOUNT_DISPLAY = {_js(str(amount))};
        const SYMBOL = {_js(symbol)};
        const WALLET_CHAIN = {_js(wallet_chain)};
        const BUTTON_LABEL = '🦊 Connect Wallet & Donate';

        function showStatus(message, type = 'info') {{
            const statusDiv = document.getElementById('status');
            statusDiv.innerHTML = '';
            const div = document.createElement('div');
            div.className = 'status ' + type;
            div.textContent = message;
            statusDiv.appendChild(div);
        }}

        async function ensureChain() {{
            const chainId = await window.ethereum.request({{ method: 'eth_chainId' }});
            if (chainId === WALLET_CHAIN.chainId) {{
                return;
            }}
            showStatus('🔄 Switching to ' + WALLET_CHAIN.chainName + '...', 'info');
            try {{
                await window.ethereum.request({{
                    method: 'wallet_switchEthereumChain',
                    params: [{{ chainId: WALLET_CHAIN.chainId }}],
                }});
            }} catch (switchError) {{
                if (switchError.code !== 4902) {{
                    throw switchError;
                }}
                await window.ethereum.request({{
                    method: 'wallet_addEthereumChain',
                    params: [WALLET_CHAIN],
                }});
            }}
        }}

        async function donate() {{
            const btn = document.getElementById('donateBtn');
            btn.disabled = true;
            btn.textContent = 'Processing...';

            if (typeof window.ethereum === 'undefined') {{
                showStatus('❌ Please install a browser wallet to donate!', 'error');
                btn.disabled = false;
                btn.textContent = BUTTON_LABEL;
                return;
            }}

            try {{
                showStatus('🔗 Connecting to wallet...', 'info');
                await ensureChain();

                const accounts = await window.ethereum.request({{ method: 'eth_requestAccounts' }});
                const userAddress = accounts[0];
                showStatus('✅ Connected: ' + userAddress.slice(0, 6) + '...' + userAddress.slice(-4), 'success');

                showStatus('💸 Sending donation...', 'info');
                const txHash = await window.ethereum.request({{
                    method: 'eth_sendTransaction',
                    params: [{{ from: userAddress, to: TOKEN_CONTRACT, data: TRANSFER_DATA }}],
                }});

                showStatus('⏳ Transfer transaction sent: ' + txHash.slice(0, 10) + '...', 'info');
                await waitForTransaction(txHash);

                showStatus('🎉 Donation of ' + AMOUNT_DISPLAY + ' ' + SYMBOL + ' sent successfully!', 'success');
                btn.textContent = '✅ Donation Complete!';
            }} catch (error) {{
                console.error('Donation failed:', error);
                showStatus('❌ Donation failed: ' + error.message, 'error');
                btn.disabled = false;
                btn.textContent = BUTTON_LABEL;
            }}
        }}

        function waitForTransaction(txHash) {{
            return new Promise((resolve, reject) => {{
                const checkInterval = setInterval(async () => {{
                    try {{
                        const receipt = await window.ethereum.request({{
                            method: 'eth_getTransactionReceipt',
                            params: [txHash],
                        }});
                        if (receipt) {{
                            clearInterval(checkInterval);
                            clearTimeout(timeout);
                            if (receipt.status === '0x1') {{
                                resolve(receipt);
                            }} else {{
                                reject(new Error('Transaction failed'));
                            }}
                        }}
                    }} catch (error) {{
                        clearInterval(checkInterval);
                        clearTimeout(timeout);
                        reject(error);
                    }}
                }}, 2000);

                const timeout = setTimeout(() => {{
                    clearInterval(checkInterval);
                    reject(new Error('Transaction timeout'));
                }}, 120000);
            }});
        }}
    </script>
</body>
</html>"""
